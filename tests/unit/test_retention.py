"""
Unit tests for retention policy management (oracle_backup/backup/retention.py).

Tests RetentionManager for keeping the newest N backups.
"""

import os
import random
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from oracle_backup.backup.retention import RetentionManager, apply_retention
from oracle_backup.backup.storage import CleanupItemFailed, LocalStorage
from oracle_backup.models import ArtifactKind, BackupArtifact


def _mock_storage():
    storage = MagicMock(spec=LocalStorage)
    storage.base_path = Path("/backups")
    return storage


def _artifacts(count, location=Path("/backups")):
    """Build newest-first artifacts without touching the filesystem."""
    base = datetime(2024, 6, 30)
    return [
        BackupArtifact(
            identifier=f"nginx_backup_{(base - timedelta(days=i)):%Y-%m-%d}.tar.gz",
            location=location,
            kind=ArtifactKind.FILE,
            created_at=base - timedelta(days=i),
        )
        for i in range(count)
    ]


class TestRetentionManager:
    """Test RetentionManager basic functionality."""

    def test_retention_manager_initialization(self, storage):
        """Test RetentionManager initializes correctly."""
        manager = RetentionManager(storage)

        assert manager.storage is storage
        assert manager.logs == []

    def test_no_op_when_within_limit(self):
        """Test nothing is deleted when count <= limit."""
        storage = _mock_storage()
        outcome = RetentionManager(storage).apply(_artifacts(4), 4)

        assert outcome.removed_count == 0
        assert outcome.failures == ()
        storage.delete.assert_not_called()

    def test_empty_list(self):
        """Test an empty artifact list is a no-op."""
        storage = _mock_storage()

        assert RetentionManager(storage).apply([], 1).removed_count == 0

    @pytest.mark.parametrize("count,limit", [(1, 1), (5, 1), (5, 3), (9, 6), (12, 12), (3, 10)])
    def test_keeps_first_limit_entries(self, count, limit):
        """Test the newest `limit` entries are kept and the rest removed."""
        storage = _mock_storage()
        artifacts = _artifacts(count)

        outcome = RetentionManager(storage).apply(artifacts, limit)

        expected_removed = [a.identifier for a in artifacts[limit:]]
        assert list(outcome.removed_identifiers) == expected_removed
        assert outcome.removed_count + min(limit, count) == count
        assert outcome.removed_count == len(outcome.removed_identifiers)
        deleted = [c.args[0] for c in storage.delete.call_args_list]
        assert deleted == artifacts[limit:]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_invalid_limit_rejected(self, limit):
        """Test that keeping fewer than one backup is refused."""
        storage = _mock_storage()

        with pytest.raises(ValueError):
            RetentionManager(storage).apply(_artifacts(3), limit)

    def test_single_failure_does_not_abort_batch(self):
        """Test one failed deletion among three still removes the other two."""
        storage = _mock_storage()
        artifacts = _artifacts(5)
        failing = artifacts[3]

        def delete(artifact):
            if artifact is failing:
                raise CleanupItemFailed("Permission denied")

        storage.delete.side_effect = delete

        outcome = RetentionManager(storage).apply(artifacts, 2)

        assert outcome.removed_count == 2
        assert set(outcome.removed_identifiers) == {artifacts[2].identifier, artifacts[4].identifier}
        assert len(outcome.failures) == 1
        assert outcome.failures[0][0] == failing.identifier
        assert "Permission denied" in outcome.failures[0][1]
        assert storage.delete.call_count == 3

    def test_retention_manager_logging(self):
        """Test that RetentionManager logs operations."""
        storage = _mock_storage()
        manager = RetentionManager(storage)

        manager.apply(_artifacts(3), 1)

        assert any("keeping 1" in log for log in manager.logs)
        assert any("Removed 2 old backup(s)" in log for log in manager.logs)


class TestRetentionOnDisk:
    """Test retention against real files."""

    def test_nine_days_keep_six(self, storage):
        """Test 9 daily backups with limit 6 removes exactly the 3 oldest."""
        days = list(range(9))
        random.Random(42).shuffle(days)
        base = datetime(2024, 6, 9, 2, 0)
        for day in days:
            created = base - timedelta(days=day)
            path = storage.base_path / f"mariadb_backup_{created:%Y%m%d}.tar.gz"
            path.write_bytes(b"data")
            os.utime(path, (created.timestamp(), created.timestamp()))

        artifacts = storage.list_artifacts("mariadb_backup_*.tar.gz")
        outcome = apply_retention(artifacts, 6, storage)

        assert sorted(outcome.removed_identifiers) == [
            "mariadb_backup_20240601.tar.gz",
            "mariadb_backup_20240602.tar.gz",
            "mariadb_backup_20240603.tar.gz",
        ]
        remaining = sorted(p.name for p in storage.base_path.iterdir())
        assert remaining == [f"mariadb_backup_202406{d:02d}.tar.gz" for d in range(4, 10)]

    def test_idempotent(self, storage, make_backup_files):
        """Test a second run against the post-cleanup set removes nothing."""
        make_backup_files([f"nginx_backup_{i}.tar.gz" for i in range(7)])

        first = apply_retention(storage.list_artifacts("nginx_backup_*.tar.gz"), 3, storage)
        second = apply_retention(storage.list_artifacts("nginx_backup_*.tar.gz"), 3, storage)

        assert first.removed_count == 4
        assert second.removed_count == 0
        assert len(storage.list_artifacts("nginx_backup_*.tar.gz")) == 3

    def test_missing_artifacts_not_counted_as_removed(self, storage):
        """Test artifacts that no longer exist are failures, not removals."""
        artifacts = _artifacts(3, location=storage.base_path)

        outcome = apply_retention(artifacts, 1, storage)

        assert outcome.removed_identifiers == ()
        assert [identifier for identifier, _ in outcome.failures] == [
            artifacts[1].identifier,
            artifacts[2].identifier,
        ]

    def test_directories_removed_recursively(self, storage):
        """Test directory artifacts are deleted with their contents."""
        for day in range(1, 6):
            directory = storage.base_path / f"backup_2024-06-0{day}"
            directory.mkdir()
            (directory / "server.tar.gz").write_bytes(b"data")

        outcome = apply_retention(storage.list_directories("backup_"), 4, storage)

        assert outcome.removed_identifiers == ("backup_2024-06-01",)
        assert not (storage.base_path / "backup_2024-06-01").exists()
        assert (storage.base_path / "backup_2024-06-05").exists()
