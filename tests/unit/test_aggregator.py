"""
Unit tests for result aggregation (oracle_backup/aggregator.py).
"""

from oracle_backup.aggregator import aggregate
from oracle_backup.models import RunOutcome


def _ok():
    return RunOutcome(success=True)


def _failed(error="boom"):
    return RunOutcome(success=False, error=error)


class TestAggregate:
    """Test aggregate function."""

    def test_counts(self):
        """Test success and failure counts add up to the module count."""
        report = aggregate([("mariadb", _ok()), ("timescaledb", _failed()), ("nginx", _ok())])

        assert report.success_count == 2
        assert report.failure_count == 1
        assert report.success_count + report.failure_count == len(report.per_module)

    def test_invocation_order_kept(self):
        """Test names are never re-sorted."""
        report = aggregate([("pterodactyl", _ok()), ("mariadb", _ok()), ("nginx", _failed())])

        assert report.module_names == ("pterodactyl", "mariadb", "nginx")

    def test_accepts_mapping(self):
        """Test a mapping is accepted as input."""
        outcome = _failed("disk full")

        report = aggregate({"nginx": outcome})

        assert report.per_module["nginx"] is outcome
        assert report.failure_count == 1

    def test_empty(self):
        """Test aggregating nothing yields an empty report."""
        report = aggregate({})

        assert report.per_module == {}
        assert report.success_count == 0
        assert report.failure_count == 0
