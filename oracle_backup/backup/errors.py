"""
Exception hierarchy for backup modules.

Every error raised while a module runs derives from BackupError and is
converted into a failed RunOutcome by the module runner.
"""

from typing import List, Tuple


class BackupError(Exception):
    """Base exception for backup related failures."""
    pass


class PrerequisiteUnavailable(BackupError):
    """Raised when a dependency (container, source directory, binary) is not ready."""
    pass


class StepFailed(BackupError):
    """Raised when an external step exits non-zero or times out."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"{step} failed: {reason}")


class PartialStepFailed(BackupError):
    """Raised when some sub-units of a module failed while others succeeded."""

    def __init__(self, failures: List[Tuple[str, str]], total: int):
        self.failures = list(failures)
        self.total = total
        names = ', '.join(name for name, _ in self.failures)
        super().__init__(f"{len(self.failures)} of {total} items failed: {names}")
