from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> str:
    """ISO-8601 UTC timestamp with a ``Z`` suffix, the format every table stores."""

    return datetime.now(tz=timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
