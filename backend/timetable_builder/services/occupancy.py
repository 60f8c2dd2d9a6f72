from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timetable_builder.schemas.timetable import TimetableEntryPayload


class ResourceKind(str, Enum):
    faculty = "faculty"
    room = "room"
    division = "division"
    batch = "batch"


def slot_token(day: str, start_time: str) -> str:
    return f"{day}|{start_time}"


class OccupancyTracker:
    """Busy (day, slot) tokens per resource, for faculty, rooms, divisions and batches."""

    def __init__(self) -> None:
        self._busy: dict[ResourceKind, dict[str, set[str]]] = {
            kind: defaultdict(set) for kind in ResourceKind
        }

    @classmethod
    def from_entries(cls, entries: Iterable["TimetableEntryPayload"]) -> "OccupancyTracker":
        tracker = cls()
        for entry in entries:
            tracker.occupy_entry(entry)
        return tracker

    def is_free(self, kind: ResourceKind, resource_id: str, day: str, start_time: str) -> bool:
        tokens = self._busy[kind].get(resource_id)
        return not tokens or slot_token(day, start_time) not in tokens

    def occupy(self, kind: ResourceKind, resource_id: str, day: str, start_time: str) -> None:
        self._busy[kind][resource_id].add(slot_token(day, start_time))

    def release(self, kind: ResourceKind, resource_id: str, day: str, start_time: str) -> None:
        tokens = self._busy[kind].get(resource_id)
        if not tokens:
            return
        tokens.discard(slot_token(day, start_time))
        if not tokens:
            del self._busy[kind][resource_id]

    def clear(self) -> None:
        for mapping in self._busy.values():
            mapping.clear()

    def busy_tokens(self, kind: ResourceKind, resource_id: str) -> frozenset[str]:
        return frozenset(self._busy[kind].get(resource_id, ()))

    def snapshot(self) -> dict[str, dict[str, frozenset[str]]]:
        return {
            kind.value: {resource_id: frozenset(tokens) for resource_id, tokens in mapping.items() if tokens}
            for kind, mapping in self._busy.items()
        }

    def audience(self, division_id: str, batch_id: str | None) -> tuple[ResourceKind, str]:
        # A batch-scoped session is tracked on the batch only; whole-division theory on the division.
        if batch_id:
            return ResourceKind.batch, batch_id
        return ResourceKind.division, division_id

    def resources_for(
        self,
        faculty_id: str,
        room_id: str,
        division_id: str,
        batch_id: str | None,
    ) -> tuple[tuple[ResourceKind, str], ...]:
        return (
            (ResourceKind.faculty, faculty_id),
            (ResourceKind.room, room_id),
            self.audience(division_id, batch_id),
        )

    def all_free(
        self,
        resources: Iterable[tuple[ResourceKind, str]],
        day: str,
        starts: Iterable[str],
    ) -> bool:
        resources = tuple(resources)
        return all(
            self.is_free(kind, resource_id, day, start)
            for start in starts
            for kind, resource_id in resources
        )

    def occupy_window(
        self,
        resources: Iterable[tuple[ResourceKind, str]],
        day: str,
        starts: Iterable[str],
    ) -> None:
        resources = tuple(resources)
        for start in starts:
            for kind, resource_id in resources:
                self.occupy(kind, resource_id, day, start)

    def release_window(
        self,
        resources: Iterable[tuple[ResourceKind, str]],
        day: str,
        starts: Iterable[str],
    ) -> None:
        resources = tuple(resources)
        for start in starts:
            for kind, resource_id in resources:
                self.release(kind, resource_id, day, start)

    def _entry_resources(self, entry: "TimetableEntryPayload") -> tuple[tuple[ResourceKind, str], ...]:
        return self.resources_for(entry.faculty.id, entry.room.id, entry.division.id, entry.batch_id)

    def occupy_entry(self, entry: "TimetableEntryPayload") -> None:
        self.occupy_window(self._entry_resources(entry), entry.day, entry.slot_starts)

    def release_entry(self, entry: "TimetableEntryPayload") -> None:
        self.release_window(self._entry_resources(entry), entry.day, entry.slot_starts)
