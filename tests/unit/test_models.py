"""
Unit tests for data models (oracle_backup/models.py).

Tests artifacts, descriptors, run outcomes and aggregated reports.
"""

import dataclasses
from datetime import datetime
from pathlib import Path

import pytest

from oracle_backup.models import (
    AggregatedReport,
    ArtifactKind,
    BackupArtifact,
    CleanupOutcome,
    ModuleDescriptor,
    RunOutcome
)


class TestBackupArtifact:
    """Test BackupArtifact model."""

    def test_path_and_kind(self):
        """Test the full path is location plus identifier."""
        artifact = BackupArtifact(
            identifier='backup_2024-06-01',
            location=Path('/backups/pterodactyl_backups'),
            kind=ArtifactKind.DIRECTORY,
            created_at=datetime(2024, 6, 1),
        )

        assert artifact.path == Path('/backups/pterodactyl_backups/backup_2024-06-01')
        assert artifact.is_directory
        assert artifact.size_bytes is None

    def test_artifact_is_immutable(self, sample_artifact):
        """Test artifacts cannot be modified."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_artifact.identifier = 'other'

    def test_artifact_repr(self, sample_artifact):
        """Test string representation."""
        assert repr(sample_artifact) == '<BackupArtifact nginx_backup_2024-06-01.tar.gz (file)>'


class TestModuleDescriptor:
    """Test ModuleDescriptor model."""

    def test_retention_limit_must_be_positive(self):
        """Test a retention limit below one is rejected."""
        with pytest.raises(ValueError):
            ModuleDescriptor(
                name='nginx',
                display_name='Nginx',
                storage_location=Path('/backups/nginx_backups'),
                naming_pattern='nginx_backup_*.tar.gz',
                retention_limit=0,
                color=38457,
                icon_url='https://example.com/nginx.svg',
            )

    def test_descriptor_repr(self, descriptors):
        """Test string representation."""
        assert repr(descriptors['mariadb']) == '<ModuleDescriptor mariadb keep=6>'


class TestRunOutcome:
    """Test RunOutcome model."""

    def test_success_status(self, success_outcome):
        """Test a successful outcome."""
        assert success_outcome.status == 'Completed'
        assert success_outcome.error is None

    def test_failure_status(self, failure_outcome):
        """Test a failed outcome."""
        assert failure_outcome.status == 'Failed'

    def test_failure_requires_error(self):
        """Test a failed outcome must describe the error."""
        with pytest.raises(ValueError):
            RunOutcome(success=False)

    def test_success_rejects_error(self):
        """Test a successful outcome cannot carry an error."""
        with pytest.raises(ValueError):
            RunOutcome(success=True, error='unexpected')


class TestCleanupOutcome:
    """Test CleanupOutcome model."""

    def test_removed_count(self):
        """Test the count matches the removed identifiers."""
        outcome = CleanupOutcome(removed_identifiers=('a', 'b'), failures=(('c', 'denied'),))

        assert outcome.removed_count == 2


class TestAggregatedReport:
    """Test AggregatedReport model."""

    def test_counts_and_names(self, success_outcome, failure_outcome):
        """Test counts and module order."""
        report = AggregatedReport(per_module={'nginx': success_outcome, 'timescaledb': failure_outcome})

        assert report.success_count == 1
        assert report.failure_count == 1
        assert report.module_names == ('nginx', 'timescaledb')
