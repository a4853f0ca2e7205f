"""Human readable sizes and durations."""

from datetime import timedelta
from typing import Union


def format_size(size_bytes: int) -> str:
    """Format a byte count with binary units, e.g. ``1.5 MB``."""
    unit = 1024
    if size_bytes < unit:
        return f"{size_bytes} B"
    div, exp = unit, 0
    n = size_bytes // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size_bytes / div:.1f} {'KMGTPE'[exp]}B"


def format_duration(duration: Union[float, timedelta]) -> str:
    """Format seconds (or a timedelta) as ``850ms``, ``12.3s``, ``4m 5s`` or ``2h 3m``."""
    seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)

    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds) % 60}s"
    return f"{int(seconds // 3600)}h {int(seconds // 60) % 60}m"


def mask_secrets(cmd: list[str]) -> list[str]:
    """Return a copy of a command line with password option values replaced by ``****``."""
    masked = []
    hide_next = False
    for arg in cmd:
        if hide_next:
            masked.append("****")
            hide_next = False
        elif arg == "--password":
            masked.append(arg)
            hide_next = True
        elif arg.startswith("--password="):
            masked.append("--password=****")
        else:
            masked.append(arg)
    return masked
