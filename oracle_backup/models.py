from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class ArtifactKind(str, Enum):
    FILE = 'file'
    DIRECTORY = 'directory'


@dataclass(frozen=True)
class BackupArtifact:
    """One retained backup unit (file or directory)"""

    identifier: str
    location: Path
    kind: ArtifactKind
    created_at: datetime
    size_bytes: Optional[int] = None

    @property
    def path(self) -> Path:
        return self.location / self.identifier

    @property
    def is_directory(self) -> bool:
        return self.kind == ArtifactKind.DIRECTORY

    def __repr__(self):
        return f'<BackupArtifact {self.identifier} ({self.kind.value})>'


@dataclass(frozen=True)
class ModuleDescriptor:
    """Static per-service configuration"""

    name: str
    display_name: str
    storage_location: Path
    naming_pattern: str
    retention_limit: int
    color: int
    icon_url: str
    artifact_kind: ArtifactKind = ArtifactKind.FILE

    def __post_init__(self):
        if self.retention_limit < 1:
            raise ValueError(f"retention_limit for {self.name} must be at least 1")

    def __repr__(self):
        return f'<ModuleDescriptor {self.name} keep={self.retention_limit}>'


@dataclass(frozen=True)
class CleanupOutcome:
    """Result of applying the retention policy"""

    removed_identifiers: Tuple[str, ...] = ()
    failures: Tuple[Tuple[str, str], ...] = ()

    @property
    def removed_count(self) -> int:
        return len(self.removed_identifiers)


@dataclass(frozen=True)
class RunOutcome:
    """Result of one module execution"""

    success: bool
    logs: Tuple[str, ...] = ()
    size_before: Optional[int] = None
    size_after: Optional[int] = None
    error: Optional[str] = None
    artifacts: Tuple[BackupArtifact, ...] = ()

    def __post_init__(self):
        if self.success and self.error is not None:
            raise ValueError("A successful outcome cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("A failed outcome requires an error description")

    @property
    def status(self) -> str:
        return 'Completed' if self.success else 'Failed'


@dataclass(frozen=True)
class AggregatedReport:
    """Summary across modules for one orchestrator run, in invocation order"""

    per_module: Dict[str, RunOutcome] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.per_module.values() if outcome.success)

    @property
    def failure_count(self) -> int:
        return len(self.per_module) - self.success_count

    @property
    def module_names(self) -> Tuple[str, ...]:
        return tuple(self.per_module)
