from __future__ import annotations

from datetime import UTC, date, datetime


def utc_today() -> date:
    # Calendar day used for "one vote per day" and due-date windows.
    return datetime.now(tz=UTC).date()
