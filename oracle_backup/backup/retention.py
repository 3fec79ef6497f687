"""
Retention policy enforcement for backups.

Keeps the newest N artifacts of a module and removes the rest from its
storage location.
"""

import logging
from typing import List, Sequence

from ..models import BackupArtifact, CleanupOutcome
from .storage import LocalStorage, StorageError


logger = logging.getLogger(__name__)


class RetentionManager:
    """
    Applies a keep-last-N policy to one module's storage location.

    Artifacts must be passed newest first, which is the order
    LocalStorage.list_artifacts() and list_directories() return.
    """

    def __init__(self, storage: LocalStorage):
        """
        Initialize retention manager.

        Args:
            storage: Storage handler used to delete artifacts
        """
        self.storage = storage
        self.logs = []

    def apply(self, artifacts: Sequence[BackupArtifact], limit: int) -> CleanupOutcome:
        """
        Delete every artifact beyond the newest `limit`.

        A failed deletion is recorded and the remaining candidates are still
        processed.

        Args:
            artifacts: Artifacts sorted newest first
            limit: Number of artifacts to keep (at least 1)

        Returns:
            CleanupOutcome with removed identifiers and failures

        Raises:
            ValueError: If limit is below 1
        """
        if limit < 1:
            raise ValueError(f"Retention limit must be at least 1, got {limit}")

        if len(artifacts) <= limit:
            return CleanupOutcome()

        candidates = list(artifacts[limit:])
        self._log(f"Cleaning up old backups in {self.storage.base_path} (keeping {limit})")

        removed: List[str] = []
        failures = []

        for artifact in candidates:
            try:
                self.storage.delete(artifact)
                removed.append(artifact.identifier)
                self._log(f"Removed old backup: {artifact.identifier}")
            except StorageError as e:
                failures.append((artifact.identifier, str(e)))
                self._log(f"Failed to remove old backup {artifact.identifier}: {e}", level=logging.ERROR)

        self._log(f"Removed {len(removed)} old backup(s)")
        return CleanupOutcome(removed_identifiers=tuple(removed), failures=tuple(failures))

    def _log(self, message: str, level: int = logging.INFO):
        """
        Record a log message and forward it to the module logger.

        Args:
            message: Log message
            level: logging level for the module logger
        """
        self.logs.append(message)
        logger.log(level, message)


def apply_retention(
    artifacts: Sequence[BackupArtifact],
    limit: int,
    storage: LocalStorage
) -> CleanupOutcome:
    """
    Apply the keep-last-N policy to an already sorted artifact list.

    Returns:
        CleanupOutcome from RetentionManager.apply()
    """
    return RetentionManager(storage).apply(artifacts, limit)
