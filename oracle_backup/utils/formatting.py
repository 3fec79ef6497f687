"""Presentation helpers for byte counts."""

from typing import Optional


KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def format_size(num_bytes: Optional[int], missing: str = 'unknown') -> str:
    """
    Format a byte count for humans: '1.50 GB', '12.00 MB', '3.25 KB', '512 B'.

    Args:
        num_bytes: Size in bytes, or None when unknown
        missing: Text returned for None

    Returns:
        Human readable size
    """
    if num_bytes is None:
        return missing
    if num_bytes >= GB:
        return f"{num_bytes / GB:.2f} GB"
    if num_bytes >= MB:
        return f"{num_bytes / MB:.2f} MB"
    if num_bytes >= KB:
        return f"{num_bytes / KB:.2f} KB"
    return f"{num_bytes} B"
