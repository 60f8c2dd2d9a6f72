from __future__ import annotations

import logging

from timetable_builder.services.occupancy import OccupancyTracker
from timetable_builder.services.slots import (
    DAYS,
    EDGE_LATE_START,
    SCHEDULABLE_SLOTS,
    SlotRef,
    make_slot_ref,
    window,
)

logger = logging.getLogger(__name__)


class SlotFinder:
    """First-fit search over the day x slot grid.

    Days are scanned in declared order and, within a day, schedulable slot
    starts in chronological order. A start qualifies when every slot of the
    ``duration`` window is free for the faculty member, the room, and the
    audience (the batch when one is given, otherwise the whole division).
    """

    def __init__(self, tracker: OccupancyTracker) -> None:
        self.tracker = tracker

    def is_available(
        self,
        faculty_id: str,
        room_id: str,
        division_id: str,
        batch_id: str | None,
        day: str,
        start_time: str,
        duration: int = 1,
    ) -> bool:
        run = window(start_time, duration)
        if run is None:
            return False
        resources = self.tracker.resources_for(faculty_id, room_id, division_id, batch_id)
        return self.tracker.all_free(resources, day, (slot.start for slot in run))

    def find_slot(
        self,
        faculty_id: str,
        room_id: str,
        division_id: str,
        batch_id: str | None = None,
        duration: int = 1,
        prefer_edges: bool = False,
    ) -> SlotRef | None:
        if prefer_edges:
            edge = self._find_edge_slot(faculty_id, room_id, division_id, batch_id, duration)
            if edge is not None:
                return edge
            logger.debug("No edge slot for faculty %s / room %s; falling back to normal scan", faculty_id, room_id)

        for day in DAYS:
            for slot in SCHEDULABLE_SLOTS:
                if self.is_available(faculty_id, room_id, division_id, batch_id, day, slot.start, duration):
                    return make_slot_ref(day, slot.start, duration)
        return None

    def _find_edge_slot(
        self,
        faculty_id: str,
        room_id: str,
        division_id: str,
        batch_id: str | None,
        duration: int,
    ) -> SlotRef | None:
        earliest = SCHEDULABLE_SLOTS[0]
        late_slots = [slot for slot in reversed(SCHEDULABLE_SLOTS) if slot.start >= EDGE_LATE_START]
        for day in DAYS:
            if self.is_available(faculty_id, room_id, division_id, batch_id, day, earliest.start, duration):
                return make_slot_ref(day, earliest.start, duration)
            for slot in late_slots:
                if self.is_available(faculty_id, room_id, division_id, batch_id, day, slot.start, duration):
                    return make_slot_ref(day, slot.start, duration)
        return None
