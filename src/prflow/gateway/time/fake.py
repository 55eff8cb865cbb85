"""Fake clock for tests."""

from datetime import UTC, datetime, timedelta

from prflow.gateway.time.abc import Time


class FakeTime(Time):
    """Clock that only moves when told to.

    Every call to now() advances the clock by `tick` so that two names generated
    in the same test are still distinct.
    """

    def __init__(
        self,
        current: datetime | None = None,
        *,
        tick: timedelta = timedelta(milliseconds=1),
    ) -> None:
        self._current = (
            current if current is not None else datetime(2024, 1, 15, 14, 30, tzinfo=UTC)
        )
        self._tick = tick

    def now(self) -> datetime:
        value = self._current
        self._current = self._current + self._tick
        return value

    def advance(self, delta: timedelta) -> None:
        self._current = self._current + delta
