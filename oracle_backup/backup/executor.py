"""
Module runner - executes one backup module end to end.

Workflow:
1. PREPARING: ensure the storage location exists
2. PRODUCING: run the module's producer (external steps)
3. FINALIZING: apply the retention policy (producer success only)
4. DONE: re-list artifacts and return an immutable RunOutcome

Any error raised by a step ends the run as a failure; it never propagates
to the caller, so one module can't stop the others.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..models import BackupArtifact, ModuleDescriptor, RunOutcome
from .errors import PartialStepFailed
from .producers import ProduceResult, Producer
from .retention import RetentionManager
from .storage import StorageError


logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = 'idle'
    PREPARING = 'preparing'
    PRODUCING = 'producing'
    FINALIZING = 'finalizing'
    DONE = 'done'


class ModuleRunner:
    """
    Runs a single module invocation. Create a new runner per invocation.
    """

    def __init__(self, descriptor: ModuleDescriptor, producer: Producer):
        """
        Initialize module runner.

        Args:
            descriptor: Static module configuration
            producer: Producer that creates this module's artifacts
        """
        self.descriptor = descriptor
        self.producer = producer
        self.state = RunState.IDLE
        self.logs = []
        self.result: Optional[ProduceResult] = None

    def execute(self) -> RunOutcome:
        """
        Execute the module.

        Returns:
            RunOutcome with logs, sizes and post-cleanup artifacts
        """
        logger.info(f"Running {self.descriptor.display_name} backup...")
        error = None

        try:
            self._execute_workflow()
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.error(f"{self.descriptor.display_name} backup failed during {self.state.value}: {error}")
            self._log(f"ERROR: {error}", echo=False)

        self.state = RunState.DONE
        artifacts = self._list_artifacts()

        if error is None:
            logger.info(f"{self.descriptor.display_name} backup completed successfully.")

        return RunOutcome(
            success=error is None,
            logs=tuple(self.logs),
            size_before=self.result.size_before if self.result else None,
            size_after=self.result.size_after if self.result else None,
            error=error,
            artifacts=tuple(artifacts),
        )

    def _execute_workflow(self):
        """Execute the state transitions up to (not including) DONE."""
        self.state = RunState.PREPARING
        self.producer.storage.ensure_exists()

        self.state = RunState.PRODUCING
        self.result = self.producer.produce(self._log)
        if self.result.failures:
            raise PartialStepFailed(self.result.failures, self.result.unit_count)

        self.state = RunState.FINALIZING
        self._apply_retention()

    def _apply_retention(self):
        """Remove artifacts beyond the module's retention limit."""
        limit = self.descriptor.retention_limit
        manager = RetentionManager(self.producer.storage)
        cleanup = manager.apply(self.producer.list_artifacts(), limit)

        for identifier, reason in cleanup.failures:
            self._log(f"Failed to remove old backup {identifier}: {reason}")

        self._log(f"Cleaned up {cleanup.removed_count} old backups (keeping {limit}).")

    def _list_artifacts(self) -> List[BackupArtifact]:
        try:
            return self.producer.list_artifacts()
        except StorageError as e:
            logger.warning(f"Could not list {self.descriptor.name} backups: {e}")
            return []

    def _log(self, message: str, echo: bool = True):
        """
        Add a line to the run log.

        Args:
            message: Log message
            echo: Also forward to the module logger
        """
        self.logs.append(message)
        if echo:
            logger.info(f"[{self.descriptor.name}] {message}")


class BackupModule:
    """
    A runnable backup service: descriptor plus producer.

    This is the capability the orchestrator holds for each module name.
    """

    def __init__(self, descriptor: ModuleDescriptor, producer: Producer):
        self.descriptor = descriptor
        self.producer = producer

    @property
    def name(self) -> str:
        return self.descriptor.name

    def run(self) -> RunOutcome:
        return ModuleRunner(self.descriptor, self.producer).execute()

    def list_artifacts(self) -> List[BackupArtifact]:
        return self.producer.list_artifacts()

    def __repr__(self):
        return f'<BackupModule {self.name}>'
