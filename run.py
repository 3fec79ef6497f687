#!/usr/bin/env python3
"""Backup runner"""
from oracle_backup.cli import main

if __name__ == '__main__':
    # Module names may be passed as arguments: run.py mariadb --nginx
    raise SystemExit(main())
