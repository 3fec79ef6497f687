"""
Shared pytest fixtures for Oracle Backup tests.

This module provides fixtures for:
- Settings rooted in a temporary directory
- Module descriptors and storage handlers
- Backup files with controlled modification times
- Mock fixtures for external commands and the webhook
"""

import os
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from oracle_backup.backup.commands import CommandRunner
from oracle_backup.backup.storage import LocalStorage
from oracle_backup.config import BackupSettings
from oracle_backup.models import ArtifactKind, BackupArtifact, RunOutcome
from oracle_backup.registry import build_descriptors


@pytest.fixture
def settings(tmp_path):
    """
    Settings with every path inside tmp_path.

    Webhook is left unconfigured.
    """
    return BackupSettings(
        webhook_url='',
        backup_root=tmp_path / 'backups',
        max_backups=4,
        timescaledb_container='TimescaleDB',
        timescaledb_databases=('stats', 'stats_dev'),
        nginx_dir=tmp_path / 'etc' / 'nginx',
        pterodactyl_volumes_dir=tmp_path / 'volumes',
        pterodactyl_env_file=tmp_path / 'panel' / '.env',
        pterodactyl_size_threshold_mb=2,
    )


@pytest.fixture
def webhook_settings(settings):
    """Settings with a webhook URL configured."""
    from dataclasses import replace
    return replace(settings, webhook_url='https://discord.example.com/api/webhooks/1/token')


@pytest.fixture
def descriptors(settings):
    """Module descriptors keyed by name, in declared order."""
    return build_descriptors(settings)


@pytest.fixture
def storage(tmp_path):
    """LocalStorage for a single module's backup directory."""
    base = tmp_path / 'module_backups'
    base.mkdir()
    return LocalStorage(base)


@pytest.fixture
def make_backup_files(storage):
    """
    Factory creating backup files in the storage location.

    Each name gets a modification time `index` days before 2024-06-10,
    so the first name is the newest.
    """
    def _make(names, base_time=datetime(2024, 6, 10, 3, 0, 0)):
        paths = []
        for index, name in enumerate(names):
            path = storage.base_path / name
            path.write_bytes(b'backup data ' * (index + 1))
            timestamp = (base_time - timedelta(days=index)).timestamp()
            os.utime(path, (timestamp, timestamp))
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def mock_commands():
    """
    Mock CommandRunner for producer tests.

    The TimescaleDB container is reported as running.
    """
    commands = MagicMock(spec=CommandRunner)
    commands.use_sudo = False
    commands.container_running.return_value = True
    return commands


@pytest.fixture
def sample_artifact(tmp_path):
    """A file artifact on disk (2 MB)."""
    location = tmp_path / 'artifacts'
    location.mkdir()
    (location / 'nginx_backup_2024-06-01.tar.gz').write_bytes(b'x' * (2 * 1024 * 1024))
    return BackupArtifact(
        identifier='nginx_backup_2024-06-01.tar.gz',
        location=location,
        kind=ArtifactKind.FILE,
        created_at=datetime(2024, 6, 1),
    )


@pytest.fixture
def success_outcome(sample_artifact):
    return RunOutcome(
        success=True,
        logs=('Creating backup archive: nginx_backup_2024-06-01.tar.gz', 'Cleaned up 0 old backups (keeping 12).'),
        size_before=8 * 1024 * 1024,
        size_after=2 * 1024 * 1024,
        artifacts=(sample_artifact,),
    )


@pytest.fixture
def failure_outcome():
    return RunOutcome(
        success=False,
        logs=("ERROR: TimescaleDB container 'TimescaleDB' is not running.",),
        error="TimescaleDB container 'TimescaleDB' is not running.",
    )
