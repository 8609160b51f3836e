"""Display helpers for timestamps and wallet addresses."""

import time


def format_time_ago(timestamp: float, now: float | None = None) -> str:
    """Coarse relative time, e.g. '3 hours ago'."""
    now = time.time() if now is None else now
    diff = now - timestamp
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)

    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "Just now"


def format_address(address: str | None) -> str:
    """Shorten a wallet address to 0x1234...abcd."""
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"
