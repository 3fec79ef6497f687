import logging
from logging.handlers import RotatingFileHandler

__version__ = '1.0.0'


def configure_logging(settings):
    """Configure application logging"""

    # Set log level based on environment
    log_level = logging.DEBUG if settings.debug else logging.INFO

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    # File handler
    if settings.log_dir:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_dir / 'oracle_backup.log',
            maxBytes=10485760,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger(__name__).debug(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_orchestrator(config_name=None, settings=None):
    """Orchestrator factory"""
    from oracle_backup.config import load_settings
    from oracle_backup.notifier import WebhookNotifier
    from oracle_backup.orchestrator import Orchestrator
    from oracle_backup.registry import build_modules

    # Load configuration
    if settings is None:
        settings = load_settings(config_name)

    configure_logging(settings)

    notifier = WebhookNotifier(settings.webhook_url, timeout=settings.webhook_timeout)
    return Orchestrator(settings, build_modules(settings), notifier)
