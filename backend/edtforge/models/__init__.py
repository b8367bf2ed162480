from edtforge.models.instructor import Instructor  # noqa: F401
from edtforge.models.room import Room  # noqa: F401
from edtforge.models.scheduled_session import ScheduledSession  # noqa: F401
from edtforge.models.subject import Subject  # noqa: F401
from edtforge.models.term_settings import TermSettings  # noqa: F401
