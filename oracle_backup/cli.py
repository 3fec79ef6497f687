"""Command line entry point: oracle-backup [--all] [module ...]"""

import argparse
import logging
import sys
from typing import List, Optional

from oracle_backup import create_orchestrator
from oracle_backup.backup.storage import StorageError
from oracle_backup.config import config


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='oracle-backup',
        allow_abbrev=False,
        description='Run service backups and report the results to a webhook.'
    )
    parser.add_argument('modules', nargs='*', help='Modules to run (default: all)')
    parser.add_argument('--all', action='store_true', help='Run every module')
    parser.add_argument('--config', choices=sorted(config), default=None,
                        help='Configuration to load (default: $BACKUP_ENV or production)')
    return parser


def requested_modules(argv: List[str]) -> List[str]:
    """
    Module tokens in command line order.

    Flag-style names such as '--mariadb' are accepted alongside plain names.
    """
    args, extra = build_parser().parse_known_args(argv)
    if args.all:
        return ['--all']
    wanted = set(args.modules) | set(extra)
    return [token for token in argv if token in wanted]


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    args, _ = build_parser().parse_known_args(argv)
    tokens = requested_modules(argv)

    try:
        orchestrator = create_orchestrator(args.config)
        orchestrator.run(tokens)
    except (StorageError, ValueError) as e:
        logger.critical(f"Fatal error: {e}")
        return 1

    logger.info("All backup scripts finished.")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
