"""
Registry of backup modules.

Declaration order is run order: data stores first, then filesystem and
application modules.
"""

from collections import OrderedDict
from typing import Dict, Optional

from .backup.commands import CommandRunner
from .backup.executor import BackupModule
from .backup.producers import create_producer
from .config import BackupSettings
from .models import ArtifactKind, ModuleDescriptor


MODULE_TABLE = [
    {
        'name': 'mariadb',
        'display_name': 'MariaDB',
        'naming_pattern': 'mariadb_backup_*.tar.gz',
        'retention_limit': 6,
        'color': 13637,
        'icon_url': 'https://mariadb.com/wp-content/uploads/2019/11/mariadb-logo-vertical_white.svg',
        'artifact_kind': ArtifactKind.FILE,
    },
    {
        'name': 'timescaledb',
        'display_name': 'TimescaleDB',
        'naming_pattern': '*',
        'retention_limit': 6,
        'color': 16121728,
        'icon_url': 'https://s3.amazonaws.com/assets.timescale.com/timescale-web/brand-images/badge/yellow/logo-yellow.svg',
        'artifact_kind': ArtifactKind.DIRECTORY,
    },
    {
        'name': 'nginx',
        'display_name': 'Nginx',
        'naming_pattern': 'nginx_backup_*.tar.gz',
        'retention_limit': 12,
        'color': 38457,
        'icon_url': 'https://www.vectorlogo.zone/logos/nginx/nginx-icon.svg',
        'artifact_kind': ArtifactKind.FILE,
    },
    {
        'name': 'pterodactyl',
        'display_name': 'Pterodactyl',
        'naming_pattern': 'backup_*',
        'retention_limit': 4,
        'color': 868992,
        'icon_url': 'https://pterodactyl.io/logos/pterry.svg',
        'artifact_kind': ArtifactKind.DIRECTORY,
    },
]


def build_descriptors(settings: BackupSettings) -> Dict[str, ModuleDescriptor]:
    """
    Build module descriptors rooted at the configured backup directory.

    Modules without their own retention limit use settings.max_backups.
    """
    descriptors = OrderedDict()

    for entry in MODULE_TABLE:
        descriptors[entry['name']] = ModuleDescriptor(
            name=entry['name'],
            display_name=entry['display_name'],
            storage_location=settings.backup_root / f"{entry['name']}_backups",
            naming_pattern=entry['naming_pattern'],
            retention_limit=entry.get('retention_limit') or settings.max_backups,
            color=entry['color'],
            icon_url=entry['icon_url'],
            artifact_kind=entry['artifact_kind'],
        )

    return descriptors


def build_modules(settings: BackupSettings, commands: Optional[CommandRunner] = None) -> Dict[str, BackupModule]:
    """
    Build the runnable module table.

    Args:
        settings: Application settings
        commands: Runner for external steps (built from settings if omitted)

    Returns:
        Ordered mapping of module name to BackupModule
    """
    if commands is None:
        commands = CommandRunner(use_sudo=settings.use_sudo, timeout=settings.step_timeout)

    return OrderedDict(
        (name, BackupModule(descriptor, create_producer(descriptor, settings, commands)))
        for name, descriptor in build_descriptors(settings).items()
    )
