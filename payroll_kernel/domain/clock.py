"""
Clock -- injectable source of payroll time.

Responsibility:
    Lifecycle and service code never call ``datetime.now()`` or
    ``date.today()`` directly.  Two things in payroll depend on time: the
    timestamp on an admin override entry and the default payment date
    when a record is marked Paid.  Both come from a ``Clock``.

Audit relevance:
    With ``DeterministicClock`` the override log and payment dates of a
    test or replay run are identical across runs.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Timezone-aware time source, injected through constructors."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Payroll calendar date of ``now()``."""
        return self.now().date()


class SystemClock(Clock):

    def __init__(self, tz: timezone = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Fixed clock for tests.

    ``now()`` returns the same instant until ``advance()`` moves it, so a
    run that marks several records Paid stamps them all with one date.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if self._current.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")

    def now(self) -> datetime:
        return self._current

    def advance(self, days: int = 0, seconds: int = 0) -> datetime:
        self._current += timedelta(days=days, seconds=seconds)
        return self._current
