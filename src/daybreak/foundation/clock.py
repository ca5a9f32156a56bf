"""Clock and id seams.

Every timestamp and id in the core flows through these two injectables so
the whole engine can be driven deterministically in tests.
"""

import itertools
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]
"""Returns the current time as an aware datetime."""

IdGenerator = Callable[[str], str]
"""Returns a fresh id for the given prefix (e.g. 'autonomy-plan')."""


def utc_now() -> datetime:
    """Wall clock in UTC."""
    return datetime.now(UTC)


def uuid_ids(prefix: str) -> str:
    """Default id generator: prefix plus a random UUID."""
    return f"{prefix}-{uuid.uuid4().hex}"


class SequentialIds:
    """Monotonic counter ids for reproducible runs.

    Example:
        >>> ids = SequentialIds()
        >>> ids("autonomy-plan"), ids("autonomy-task")
        ('autonomy-plan-0001', 'autonomy-task-0002')
    """

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def __call__(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter):04d}"


def to_iso(dt: datetime | None) -> str | None:
    """Serialize a datetime for to_dict() payloads."""
    return dt.isoformat() if dt else None


def from_iso(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string, treating naive values as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
