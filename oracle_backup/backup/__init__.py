"""
Backup module for Oracle Backup.

This module handles the core backup functionality including:
- Artifact listing and deletion (local storage)
- Retention policy enforcement
- External step execution and per-service producers
- Module execution (state machine per run)
"""

from .executor import BackupModule, ModuleRunner, RunState
from .producers import create_producer, Producer
from .storage import LocalStorage, StorageError
from .retention import RetentionManager, apply_retention
from .errors import BackupError, PrerequisiteUnavailable, StepFailed, PartialStepFailed

__all__ = [
    'BackupModule',
    'ModuleRunner',
    'RunState',
    'create_producer',
    'Producer',
    'LocalStorage',
    'StorageError',
    'RetentionManager',
    'apply_retention',
    'BackupError',
    'PrerequisiteUnavailable',
    'StepFailed',
    'PartialStepFailed'
]
