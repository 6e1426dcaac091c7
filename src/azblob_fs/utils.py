"""Display helpers for the CLI."""

from datetime import datetime
from typing import Optional


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_datetime(value: Optional[datetime]) -> str:
    """Render a timestamp for tables.

    Examples:
        datetime(2024, 1, 15, 10, 30, 45, tzinfo=utc) -> "2024-01-15 10:30:45"
        None -> "-"
    """
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S")
