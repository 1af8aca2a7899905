"""Relative time labels for conversation and session timestamps."""

from datetime import datetime, timezone


def format_relative(ts: datetime, now: datetime | None = None) -> str:
    """Human label like "5 min ago"; falls back to the ISO date after a week."""
    now = now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    elapsed = (now - ts).total_seconds()
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return ts.date().isoformat()
