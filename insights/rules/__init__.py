"""
Insight rule implementations.

DEFAULT_RULES lists the rules in evaluation order; the order of the
emitted insights follows it.
"""

from .back_to_back import BackToBackMeetingsRule
from .high_priority import HighPriorityTasksRule
from .overdue import OverdueTasksRule
from .pending_appointments import PendingAppointmentsRule
from .meeting_heavy import MeetingHeavyDayRule

DEFAULT_RULES = (
    BackToBackMeetingsRule,
    HighPriorityTasksRule,
    OverdueTasksRule,
    PendingAppointmentsRule,
    MeetingHeavyDayRule,
)

__all__ = [
    "BackToBackMeetingsRule",
    "HighPriorityTasksRule",
    "OverdueTasksRule",
    "PendingAppointmentsRule",
    "MeetingHeavyDayRule",
    "DEFAULT_RULES",
]
