"""Text helpers for values that end up in fixed-width display fields."""


def bounded(value: str | None, limit: int) -> str:
    """Returns `value` cut down to at most `limit` characters; None becomes ''."""
    if value is None:
        return ""
    return value[:limit]
