import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


WEBHOOK_PLACEHOLDER = 'YOUR_DISCORD_WEBHOOK_URL_HERE'


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.environ.get(name, default)
    return tuple(item.strip() for item in raw.split(',') if item.strip())


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    return float(raw) if raw else None


class Config:
    """Base configuration"""

    # Notifications
    WEBHOOK_URL = os.environ.get('WEBHOOK_URL', '')
    WEBHOOK_USERNAME = os.environ.get('WEBHOOK_USERNAME') or 'Oracle Backup'
    WEBHOOK_TIMEOUT = float(os.environ.get('WEBHOOK_TIMEOUT', 10))

    # Retention
    MAX_BACKUPS = int(os.environ.get('MAX_BACKUPS', 4))

    # Storage
    BACKUP_ROOT_DIR = os.environ.get('BACKUP_ROOT_DIR') or './'
    LOG_DIR = os.environ.get('LOG_DIR') or None

    # External steps
    STEP_TIMEOUT = _env_float('STEP_TIMEOUT')
    USE_SUDO = os.environ.get('USE_SUDO', 'false').lower() == 'true'

    # Service sources
    MARIADB_BACKUP_BIN = os.environ.get('MARIADB_BACKUP_BIN') or '/usr/bin/mariadb-backup'
    TIMESCALEDB_CONTAINER = os.environ.get('TIMESCALEDB_CONTAINER') or 'TimescaleDB'
    TIMESCALEDB_DATABASES = _env_list('TIMESCALEDB_DATABASES', 'mindustry_stats,mindustry_stats_dev')
    NGINX_DIR = os.environ.get('NGINX_DIR') or '/etc/nginx'
    PTERODACTYL_VOLUMES_DIR = os.environ.get('PTERODACTYL_VOLUMES_DIR') or '/var/lib/pterodactyl/volumes'
    PTERODACTYL_ENV_FILE = os.environ.get('PTERODACTYL_ENV_FILE') or '/var/www/pterodactyl/.env'
    PTERODACTYL_SIZE_THRESHOLD_MB = int(os.environ.get('PTERODACTYL_SIZE_THRESHOLD_MB', 1000))

    DEBUG = False


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

    # Use local data directory for development
    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    DATA_DIR = os.path.join(BASE_DIR, 'data')
    BACKUP_ROOT_DIR = os.environ.get('BACKUP_ROOT_DIR') or os.path.join(DATA_DIR, 'backups')
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(DATA_DIR, 'logs')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False

    # Privileged tools normally need sudo on the backup host
    USE_SUDO = os.environ.get('USE_SUDO', 'true').lower() == 'true'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}


@dataclass(frozen=True)
class BackupSettings:
    """Read-only settings built once at startup and passed to every component."""

    webhook_url: str = ''
    webhook_username: str = 'Oracle Backup'
    webhook_timeout: float = 10.0
    max_backups: int = 4
    backup_root: Path = Path('./')
    log_dir: Optional[Path] = None
    step_timeout: Optional[float] = None
    use_sudo: bool = False
    mariadb_backup_bin: str = '/usr/bin/mariadb-backup'
    timescaledb_container: str = 'TimescaleDB'
    timescaledb_databases: Tuple[str, ...] = ('mindustry_stats', 'mindustry_stats_dev')
    nginx_dir: Path = Path('/etc/nginx')
    pterodactyl_volumes_dir: Path = Path('/var/lib/pterodactyl/volumes')
    pterodactyl_env_file: Path = Path('/var/www/pterodactyl/.env')
    pterodactyl_size_threshold_mb: int = 1000
    debug: bool = False

    def __post_init__(self):
        if self.max_backups < 1:
            raise ValueError(f"MAX_BACKUPS must be at least 1, got {self.max_backups}")

    @classmethod
    def from_object(cls, obj) -> 'BackupSettings':
        """Build settings from a configuration class such as ``ProductionConfig``."""
        log_dir = getattr(obj, 'LOG_DIR', None)
        return cls(
            webhook_url=obj.WEBHOOK_URL,
            webhook_username=obj.WEBHOOK_USERNAME,
            webhook_timeout=obj.WEBHOOK_TIMEOUT,
            max_backups=obj.MAX_BACKUPS,
            backup_root=Path(obj.BACKUP_ROOT_DIR),
            log_dir=Path(log_dir) if log_dir else None,
            step_timeout=obj.STEP_TIMEOUT,
            use_sudo=obj.USE_SUDO,
            mariadb_backup_bin=obj.MARIADB_BACKUP_BIN,
            timescaledb_container=obj.TIMESCALEDB_CONTAINER,
            timescaledb_databases=tuple(obj.TIMESCALEDB_DATABASES),
            nginx_dir=Path(obj.NGINX_DIR),
            pterodactyl_volumes_dir=Path(obj.PTERODACTYL_VOLUMES_DIR),
            pterodactyl_env_file=Path(obj.PTERODACTYL_ENV_FILE),
            pterodactyl_size_threshold_mb=obj.PTERODACTYL_SIZE_THRESHOLD_MB,
            debug=obj.DEBUG,
        )


def load_settings(config_name: Optional[str] = None) -> BackupSettings:
    """
    Load settings for the named environment.

    Args:
        config_name: 'development' or 'production'; defaults to $BACKUP_ENV

    Returns:
        BackupSettings instance

    Raises:
        ValueError: If the environment name is unknown
    """
    if config_name is None:
        config_name = os.environ.get('BACKUP_ENV', 'production')

    if config_name not in config:
        raise ValueError(
            f"Unknown configuration: {config_name}. "
            f"Valid options: {list(config.keys())}"
        )

    return BackupSettings.from_object(config[config_name])
