"""Fixed weekly grid: six teaching days of eight one-hour slots, one of them lunch."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSlot:
    index: int
    start: str
    end: str
    label: str
    schedulable: bool = True


@dataclass(frozen=True)
class SlotRef:
    day: str
    start_time: str
    end_time: str
    duration: int = 1


DAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot(0, "09:00", "10:00", "9:00-10:00"),
    TimeSlot(1, "10:00", "11:00", "10:00-11:00"),
    TimeSlot(2, "11:00", "12:00", "11:00-12:00"),
    TimeSlot(3, "12:00", "13:00", "12:00-1:00 (Break)", schedulable=False),
    TimeSlot(4, "13:00", "14:00", "1:00-2:00"),
    TimeSlot(5, "14:00", "15:00", "2:00-3:00"),
    TimeSlot(6, "15:00", "16:00", "3:00-4:00"),
    TimeSlot(7, "16:00", "17:00", "4:00-5:00"),
)

SCHEDULABLE_SLOTS: tuple[TimeSlot, ...] = tuple(slot for slot in TIME_SLOTS if slot.schedulable)

# Slots at or beyond this index count as late in the day.
LATE_SLOT_INDEX = 6
# Edge-preferring placement only looks at afternoon slots starting from here.
EDGE_LATE_START = "15:00"

_SLOTS_BY_START = {slot.start: slot for slot in TIME_SLOTS}


def slot_at(start_time: str) -> TimeSlot | None:
    return _SLOTS_BY_START.get(start_time)


def slot_index(start_time: str) -> int:
    slot = _SLOTS_BY_START.get(start_time)
    return -1 if slot is None else slot.index


def day_index(day: str) -> int:
    try:
        return DAYS.index(day)
    except ValueError:
        return -1


def window(start_time: str, duration: int = 1) -> tuple[TimeSlot, ...] | None:
    """Contiguous schedulable slots beginning at ``start_time``.

    Returns None when the start is unknown or not schedulable, when the run
    would cross a non-schedulable slot, or when it runs past the end of day.
    """
    first = _SLOTS_BY_START.get(start_time)
    if first is None or not first.schedulable or duration < 1:
        return None
    end = first.index + duration
    if end > len(TIME_SLOTS):
        return None
    run = TIME_SLOTS[first.index:end]
    if not all(slot.schedulable for slot in run):
        return None
    return run


def end_time_for(start_time: str, duration: int = 1) -> str | None:
    run = window(start_time, duration)
    return None if run is None else run[-1].end


def covered_slots(start_time: str, end_time: str) -> tuple[TimeSlot, ...]:
    """Schedulable slots an entry spanning [start_time, end_time) occupies."""
    first = _SLOTS_BY_START.get(start_time)
    if first is None:
        return ()
    covered = []
    for slot in TIME_SLOTS[first.index:]:
        if slot.start >= end_time:
            break
        if slot.schedulable:
            covered.append(slot)
    return tuple(covered)


def make_slot_ref(day: str, start_time: str, duration: int = 1) -> SlotRef | None:
    end_time = end_time_for(start_time, duration)
    if end_time is None:
        return None
    return SlotRef(day=day, start_time=start_time, end_time=end_time, duration=duration)
