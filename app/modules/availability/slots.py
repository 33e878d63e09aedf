"""Slot generation.

Turns a day's effective availability ranges into the discrete list of
bookable start times. Everything here is pure and synchronous: callers pass
the ranges, the booked start times and ``now``; nothing reads the clock or the
database.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotRange:
    start: time
    end: time
    duration_minutes: int

    @property
    def is_valid(self) -> bool:
        return self.start < self.end and self.duration_minutes > 0


@dataclass(frozen=True)
class Slot:
    time: time
    end_time: time
    available: bool


def overlaps(s1: time, e1: time, s2: time, e2: time) -> bool:
    """Half-open [s1, e1) and [s2, e2) overlap."""
    return s1 < e2 and s2 < e1


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _from_minutes(m: int) -> time:
    return time(m // 60, m % 60)


def split_on_break(start: time, end: time, duration_minutes: int,
                   break_start: time | None = None, break_end: time | None = None) -> list[SlotRange]:
    """A weekly row with a break becomes the ranges either side of it."""
    if break_start is None or break_end is None or not (start < break_start < break_end < end):
        return [SlotRange(start, end, duration_minutes)]
    return [
        SlotRange(start, break_start, duration_minutes),
        SlotRange(break_end, end, duration_minutes),
    ]


def candidate_starts(r: SlotRange) -> list[tuple[int, int]]:
    """(start, end) minute pairs for every whole slot that fits in ``r``."""
    out = []
    cur, end, step = _minutes(r.start), _minutes(r.end), r.duration_minutes
    while cur + step <= end:
        out.append((cur, cur + step))
        cur += step
    return out


def generate_slots(
    ranges: Sequence[SlotRange],
    booked_start_times: Iterable[time],
    on_date: date,
    now: datetime,
    lead_minutes: int = 0,
) -> list[Slot]:
    """Ordered slots for ``on_date``.

    A slot is emitted for every ``start + k*duration`` whose end stays within
    the range (the end boundary is inclusive). Ranges that fail ``start < end``
    or ``duration > 0`` are skipped, not raised, so bad historical rows cannot
    break a query. Overlapping ranges are tolerated: the first range to emit a
    start time wins.

    A slot is unavailable when its start is booked or when
    ``on_date + start <= now + lead_minutes``. ``now`` must already be in the
    clinic's timezone; its tzinfo is ignored.
    """
    booked = {_minutes(t) for t in booked_start_times}
    cutoff = now.replace(tzinfo=None) + timedelta(minutes=lead_minutes)
    day_start = datetime.combine(on_date, time(0, 0))

    seen: dict[int, int] = {}
    for r in ranges:
        if not r.is_valid:
            logger.warning(f"Skipping malformed range {r.start}-{r.end} ({r.duration_minutes}min) on {on_date}")
            continue
        for s, e in candidate_starts(r):
            seen.setdefault(s, e)

    slots = []
    for s in sorted(seen):
        starts_at = day_start + timedelta(minutes=s)
        available = s not in booked and starts_at > cutoff
        slots.append(Slot(time=_from_minutes(s), end_time=_from_minutes(seen[s]), available=available))
    return slots
