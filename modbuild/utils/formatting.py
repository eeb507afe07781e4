"""
Helper functions for formatting data into human-readable strings.
"""

import shlex
from collections.abc import Iterable


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 KB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2m 12s').
    Sub-second durations are shown in milliseconds.
    """
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_command(name: str, args: Iterable[str]) -> str:
    """Renders a tool invocation as a single shell-like line."""
    return " ".join([name, *(shlex.quote(str(arg)) for arg in args)])
