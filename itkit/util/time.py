from __future__ import annotations

from datetime import datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z.

    Microseconds are kept so rows created within the same second still sort by
    creation order (listings order by created_at).
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")
