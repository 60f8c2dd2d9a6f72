from timetable_builder.models.allocation import SessionType, SubjectAllocation  # noqa: F401
from timetable_builder.models.division import Division  # noqa: F401
from timetable_builder.models.faculty import Faculty  # noqa: F401
from timetable_builder.models.room import Room, RoomCategory  # noqa: F401
from timetable_builder.models.subject import Subject, SubjectType  # noqa: F401
from timetable_builder.models.timetable import TimetableEntryRecord  # noqa: F401
