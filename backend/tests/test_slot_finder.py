from timetable_builder.services.occupancy import OccupancyTracker, ResourceKind
from timetable_builder.services.slot_finder import SlotFinder
from timetable_builder.services.slots import DAYS, SCHEDULABLE_SLOTS


def test_first_fit_returns_monday_morning_on_empty_grid():
    slot = SlotFinder(OccupancyTracker()).find_slot("f1", "r1", "d1")

    assert (slot.day, slot.start_time, slot.end_time) == ("Monday", "09:00", "10:00")


def test_busy_faculty_pushes_search_forward():
    tracker = OccupancyTracker()
    tracker.occupy(ResourceKind.faculty, "f1", "Monday", "09:00")
    tracker.occupy(ResourceKind.faculty, "f1", "Monday", "10:00")

    slot = SlotFinder(tracker).find_slot("f1", "r1", "d1")

    assert (slot.day, slot.start_time) == ("Monday", "11:00")


def test_break_slot_is_never_returned():
    tracker = OccupancyTracker()
    finder = SlotFinder(tracker)
    found = []
    while True:
        slot = finder.find_slot("f1", "r1", "d1")
        if slot is None:
            break
        found.append(slot)
        tracker.occupy(ResourceKind.faculty, "f1", slot.day, slot.start_time)

    assert len(found) == len(DAYS) * len(SCHEDULABLE_SLOTS)
    assert all(slot.start_time != "12:00" for slot in found)


def test_two_slot_window_skips_starts_before_break_and_end_of_day():
    tracker = OccupancyTracker()
    tracker.occupy(ResourceKind.room, "lab1", "Monday", "09:00")
    tracker.occupy(ResourceKind.room, "lab1", "Monday", "10:00")

    slot = SlotFinder(tracker).find_slot("f1", "lab1", "d1", "b1", duration=2)

    # 11:00 would run into the break
    assert (slot.day, slot.start_time, slot.end_time, slot.duration) == ("Monday", "13:00", "15:00", 2)


def test_batch_audience_ignores_division_occupancy():
    tracker = OccupancyTracker()
    tracker.occupy(ResourceKind.division, "d1", "Monday", "09:00")

    assert SlotFinder(tracker).find_slot("f1", "r1", "d1", "b1").start_time == "09:00"
    assert SlotFinder(tracker).find_slot("f1", "r1", "d1").start_time == "10:00"


def test_edge_mode_prefers_first_slot_of_the_day():
    slot = SlotFinder(OccupancyTracker()).find_slot("f1", "r1", "d1", "b1", prefer_edges=True)

    assert (slot.day, slot.start_time) == ("Monday", "09:00")


def test_edge_mode_falls_back_to_latest_afternoon_slot():
    tracker = OccupancyTracker()
    tracker.occupy(ResourceKind.faculty, "f1", "Monday", "09:00")

    slot = SlotFinder(tracker).find_slot("f1", "r1", "d1", "b1", prefer_edges=True)

    assert (slot.day, slot.start_time) == ("Monday", "16:00")


def test_edge_mode_falls_back_to_normal_scan_when_no_edge_is_free():
    tracker = OccupancyTracker()
    for day in DAYS:
        for start in ("09:00", "15:00", "16:00"):
            tracker.occupy(ResourceKind.faculty, "f1", day, start)

    slot = SlotFinder(tracker).find_slot("f1", "r1", "d1", "b1", prefer_edges=True)

    assert (slot.day, slot.start_time) == ("Monday", "10:00")


def test_returns_none_when_grid_is_full():
    tracker = OccupancyTracker()
    for day in DAYS:
        for slot in SCHEDULABLE_SLOTS:
            tracker.occupy(ResourceKind.room, "r1", day, slot.start)

    assert SlotFinder(tracker).find_slot("f1", "r1", "d1") is None
