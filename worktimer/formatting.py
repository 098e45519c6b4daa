"""Human-readable rendering of durations and ids."""


def duration(sec: int) -> str:
    """Render seconds as '1h 02m 03s', '2m 05s' or '45s'; negatives clamp to 0."""
    sec = max(sec, 0)
    hours, rest = divmod(sec, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m {seconds:02d}s"
    if minutes > 0:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


def short_id(value: str) -> str:
    """The first 8 characters of an id."""
    return value[:8]