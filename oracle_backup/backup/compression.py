"""
Compression handlers for backup archives.

Supports:
- tar.gz: Gzip compressed tar
- none: No compression (tar only)
- gzip_file: in-place gzip of an existing file (file -> file.gz)
"""

import gzip
import os
import shutil
import tarfile
from pathlib import Path
from typing import List, Union

from .errors import StepFailed


class CompressionError(StepFailed):
    """Raised when archive creation fails."""

    def __init__(self, reason: str, step: str = 'Compression'):
        super().__init__(step, reason)


FORMAT_MAP = {
    'tar.gz': ('tar.gz', 'w:gz'),
    'none': ('tar', 'w'),
}


def create_archive(
    source_paths: List[Union[str, Path]],
    output_path: Union[str, Path],
    compression_format: str = 'tar.gz'
) -> str:
    """
    Create a tar archive from source paths.

    Args:
        source_paths: List of file/directory paths to include in archive
        output_path: Path where archive should be created (without extension)
        compression_format: Format to use ('tar.gz', 'none')

    Returns:
        Full path to the created archive file

    Raises:
        CompressionError: If archive creation fails
        ValueError: If compression_format is invalid
    """
    if not source_paths:
        raise CompressionError("No source paths provided")

    if compression_format not in FORMAT_MAP:
        raise ValueError(
            f"Invalid compression format: {compression_format}. "
            f"Valid options: {list(FORMAT_MAP.keys())}"
        )

    extension, mode = FORMAT_MAP[compression_format]
    archive_path = f"{output_path}.{extension}"

    try:
        with tarfile.open(archive_path, mode) as tar:
            for source_path in source_paths:
                source = Path(source_path)

                if not source.exists():
                    raise CompressionError(f"Path does not exist: {source_path}")

                # Basename as arcname keeps the archive shallow, like `tar -C parent name`
                tar.add(source, arcname=source.name, recursive=True)

        return archive_path

    except Exception as e:
        # Clean up partial archive on failure
        if os.path.exists(archive_path):
            try:
                os.remove(archive_path)
            except OSError:
                pass
        if isinstance(e, CompressionError):
            raise
        raise CompressionError(f"Failed to create archive: {e}")


def gzip_file(path: Union[str, Path], level: int = 9) -> str:
    """
    Compress a file to `{path}.gz` and remove the original, like `gzip -9`.

    Args:
        path: File to compress
        level: gzip compression level (1-9)

    Returns:
        Path of the compressed file

    Raises:
        CompressionError: If compression fails
    """
    source = Path(path)
    target = Path(f"{source}.gz")

    try:
        with source.open('rb') as src, gzip.open(target, 'wb', compresslevel=level) as dst:
            shutil.copyfileobj(src, dst)
        source.unlink()
        return str(target)

    except OSError as e:
        if target.exists():
            try:
                target.unlink()
            except OSError:
                pass
        raise CompressionError(f"Failed to compress {source.name}: {e}", step='gzip')
