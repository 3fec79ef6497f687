"""
Local storage handling for backup artifacts.

Each module owns one storage location ({backup_root}/{module}_backups).
LocalStorage lists the artifacts found there, newest first, and deletes
artifacts on behalf of the retention policy.
"""

import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Union

from ..models import ArtifactKind, BackupArtifact
from .errors import BackupError


DIRECTORY_DATE_RE = re.compile(r'(\d{4})-(\d{2})-(\d{2})$')


class StorageError(BackupError):
    """Raised when storage operation fails."""
    pass


class CleanupItemFailed(StorageError):
    """Raised when a single artifact cannot be removed."""
    pass


def matches_pattern(name: str, pattern: str) -> bool:
    """
    Match a name against a pattern with at most one '*' wildcard.

    Everything outside the wildcard must match exactly (case-sensitive).
    A pattern without a wildcard only matches the identical name.

    Args:
        name: Entry name to test
        pattern: Naming pattern, e.g. 'nginx_backup_*.tar.gz'

    Returns:
        True if name matches pattern
    """
    if '*' not in pattern:
        return name == pattern

    prefix, _, suffix = pattern.partition('*')
    if '*' in suffix:
        raise ValueError(f"Pattern supports a single wildcard: {pattern}")

    return (
        len(name) >= len(prefix) + len(suffix)
        and name.startswith(prefix)
        and name.endswith(suffix)
    )


def get_path_size(path: Union[str, Path]) -> int:
    """
    Get the size of a file, or the total size of a directory tree, in bytes.

    Args:
        path: File or directory path

    Returns:
        Size in bytes

    Raises:
        StorageError: If the path doesn't exist or cannot be accessed
    """
    path = Path(path)

    try:
        if not path.is_dir():
            return path.stat().st_size

        total = 0
        for root, _dirs, files in os.walk(path):
            for name in files:
                file_path = Path(root) / name
                if not file_path.is_symlink():
                    total += file_path.stat().st_size
        return total

    except FileNotFoundError:
        raise StorageError(f"Path not found: {path}")
    except OSError as e:
        raise StorageError(f"Failed to measure {path}: {e}")


def _sort_newest_first(artifacts: List[BackupArtifact]) -> List[BackupArtifact]:
    return sorted(artifacts, key=lambda a: (a.created_at, a.identifier), reverse=True)


class LocalStorage:
    """
    Handler for one module's backup directory.

    Lists artifacts newest first and removes them on request.
    """

    def __init__(self, base_path: Union[str, Path]):
        """
        Initialize local storage handler.

        Args:
            base_path: Storage location for a single module
        """
        self.base_path = Path(base_path)

    def ensure_exists(self):
        """
        Create the storage location if it doesn't exist.

        Raises:
            StorageError: If the directory cannot be created
        """
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create storage directory {self.base_path}: {e}")

    def list_artifacts(self, pattern: str) -> List[BackupArtifact]:
        """
        List entries matching a naming pattern, newest first.

        Ties on modification time are broken by identifier, descending.

        Args:
            pattern: Naming pattern with at most one '*' wildcard

        Returns:
            List of BackupArtifact (empty if the location doesn't exist)

        Raises:
            StorageError: If the location cannot be read
        """
        if not self.base_path.is_dir():
            return []

        try:
            artifacts = []

            for entry in self.base_path.iterdir():
                if not matches_pattern(entry.name, pattern):
                    continue

                stat = entry.stat()
                artifacts.append(BackupArtifact(
                    identifier=entry.name,
                    location=self.base_path,
                    kind=ArtifactKind.DIRECTORY if entry.is_dir() else ArtifactKind.FILE,
                    created_at=datetime.fromtimestamp(stat.st_mtime),
                ))

            return _sort_newest_first(artifacts)

        except OSError as e:
            raise StorageError(f"Failed to list {self.base_path}: {e}")

    def list_directories(self, prefix: str) -> List[BackupArtifact]:
        """
        List date-stamped backup directories ({prefix}YYYY-MM-DD), newest first.

        The creation time comes from the date in the name; directories whose
        name carries no parsable date fall back to their modification time.

        Args:
            prefix: Fixed directory name prefix, e.g. 'backup_'

        Returns:
            List of BackupArtifact (empty if the location doesn't exist)

        Raises:
            StorageError: If the location cannot be read
        """
        if not self.base_path.is_dir():
            return []

        try:
            artifacts = []

            for entry in self.base_path.iterdir():
                if not entry.is_dir() or not entry.name.startswith(prefix):
                    continue

                created_at = None
                match = DIRECTORY_DATE_RE.search(entry.name[len(prefix):])
                if match:
                    try:
                        created_at = datetime(*(int(part) for part in match.groups()))
                    except ValueError:
                        created_at = None
                if created_at is None:
                    created_at = datetime.fromtimestamp(entry.stat().st_mtime)

                artifacts.append(BackupArtifact(
                    identifier=entry.name,
                    location=self.base_path,
                    kind=ArtifactKind.DIRECTORY,
                    created_at=created_at,
                ))

            return _sort_newest_first(artifacts)

        except OSError as e:
            raise StorageError(f"Failed to list {self.base_path}: {e}")

    def delete(self, artifact: BackupArtifact):
        """
        Delete an artifact: unlink a file or remove a directory recursively.

        Args:
            artifact: Artifact to remove

        Raises:
            CleanupItemFailed: If the artifact is gone or deletion fails
        """
        full_path = self.base_path / artifact.identifier

        try:
            if full_path.is_dir() and not full_path.is_symlink():
                shutil.rmtree(full_path)
            elif full_path.exists() or full_path.is_symlink():
                full_path.unlink()
            else:
                raise CleanupItemFailed(f"Backup not found: {full_path}")
        except PermissionError as e:
            raise CleanupItemFailed(f"Permission denied deleting {full_path}: {e}")
        except OSError as e:
            raise CleanupItemFailed(f"Failed to delete {full_path}: {e}")
