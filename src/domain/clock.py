"""System clock - default Clock implementation."""

from datetime import UTC, datetime


class SystemClock:
    """Implements Clock protocol with the wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
