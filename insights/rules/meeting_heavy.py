"""
Meeting-heavy Day Rule
======================

Warns when today's meeting count exceeds the configured threshold.
"""

from typing import List

from ..base import BaseRule, EvaluationContext, Insight, InsightKind, RuleMetadata
from ..schema import DataSnapshot


class MeetingHeavyDayRule(BaseRule):

    def get_metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="meeting_heavy_day",
            title="Meeting-heavy day",
            description="More meetings today than the configured threshold",
            kind=InsightKind.WARNING,
        )

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        meetings = [event for event in snapshot.events if event.is_meeting]
        if len(meetings) <= context.meeting_heavy_threshold:
            return []

        return [self.emit(
            f"{len(meetings)} meetings today leaves little room for deep work.",
            action="Block focus time",
        )]
