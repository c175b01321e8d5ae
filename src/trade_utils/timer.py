import datetime as _dt
import logging
from collections.abc import Callable
from dataclasses import dataclass

from trade_utils.enums import TimeUnit

logger = logging.getLogger(__name__)


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


@dataclass(frozen=True)
class FixedUpdate:
    unit: TimeUnit
    count: int

    def __post_init__(self) -> None:
        if self.count <= 0:
            raise ValueError(f"FixedUpdate count must be positive, got {self.count}")

    @classmethod
    def minutes(cls, count: int) -> "FixedUpdate":
        return cls(TimeUnit.MINUTE, count)

    @classmethod
    def hours(cls, count: int) -> "FixedUpdate":
        return cls(TimeUnit.HOUR, count)

    @classmethod
    def days(cls, count: int) -> "FixedUpdate":
        return cls(TimeUnit.DAY, count)

    @property
    def interval(self) -> _dt.timedelta:
        return _dt.timedelta(**{f"{self.unit.value}s": self.count})

    def floor(self, moment: _dt.datetime) -> _dt.datetime:
        """Truncate ``moment`` to the start of its minute, hour or day"""
        moment = moment.replace(second=0, microsecond=0)
        if self.unit in (TimeUnit.HOUR, TimeUnit.DAY):
            moment = moment.replace(minute=0)
        if self.unit == TimeUnit.DAY:
            moment = moment.replace(hour=0)
        return moment


class Timer:
    """Fixed-interval timer polled from a caller's loop.

    ``has_elapsed`` is True once a full interval has passed since the last
    boundary; the boundary then moves to the current minute/hour/day.
    """

    def __init__(self, fixed_update: FixedUpdate, clock: Callable[[], _dt.datetime] = _utcnow) -> None:
        self._fixed_update = fixed_update
        self._clock = clock
        self._boundary = fixed_update.floor(clock())
        logger.info(f"Start timer every {fixed_update.count} {fixed_update.unit.value}(s) from {self._boundary}")

    @property
    def timestamp_ms(self) -> int:
        return int(self._boundary.timestamp() * 1000)

    def has_elapsed(self) -> bool:
        now = self._clock()
        if self._boundary + self._fixed_update.interval > now:
            return False

        previous = self._boundary
        self._boundary = self._fixed_update.floor(now)
        logger.info(f"Update timer from {previous} to {self._boundary}")
        return True
