"""
Unit tests for the command line entry point (oracle_backup/cli.py).
"""

from unittest.mock import MagicMock, patch

import pytest

from oracle_backup.backup.storage import StorageError
from oracle_backup.cli import main, requested_modules


class TestRequestedModules:
    """Test command line token handling."""

    @pytest.mark.parametrize('argv,expected', [
        ([], []),
        (['nginx', 'mariadb'], ['nginx', 'mariadb']),
        (['--nginx', 'mariadb'], ['--nginx', 'mariadb']),
        (['--mariadb', '--pterodactyl'], ['--mariadb', '--pterodactyl']),
        (['nginx', '--all'], ['--all']),
        (['--config', 'development', 'nginx'], ['nginx']),
    ])
    def test_requested_modules(self, argv, expected):
        assert requested_modules(argv) == expected


class TestMain:
    """Test main()."""

    @patch('oracle_backup.cli.create_orchestrator')
    def test_success_exit_code(self, mock_create):
        """Test a completed run exits 0 even when modules failed."""
        orchestrator = MagicMock()
        mock_create.return_value = orchestrator

        assert main(['--nginx', '--config', 'development']) == 0
        mock_create.assert_called_once_with('development')
        orchestrator.run.assert_called_once_with(['--nginx'])

    @patch('oracle_backup.cli.create_orchestrator')
    def test_backup_root_failure_exit_code(self, mock_create):
        """Test a fatal storage error exits 1."""
        mock_create.return_value.run.side_effect = StorageError("Failed to create backup root")

        assert main([]) == 1

    @patch('oracle_backup.cli.create_orchestrator')
    def test_invalid_configuration_exit_code(self, mock_create):
        """Test invalid settings exit 1."""
        mock_create.side_effect = ValueError("MAX_BACKUPS must be at least 1, got 0")

        assert main(['--all']) == 1
