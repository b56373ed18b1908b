"""
Back-to-back Meetings Rule
==========================

Flags every adjacent pair of meetings separated by less than the
configured buffer.
"""

from datetime import timedelta
from typing import List

from ..base import BaseRule, EvaluationContext, Insight, InsightKind, RuleMetadata
from ..schema import DataSnapshot
from utils.time_helpers import format_clock


class BackToBackMeetingsRule(BaseRule):
    """
    One warning per adjacent meeting pair with gap < threshold.

    Overlapping meetings produce a negative gap and are reported the same
    way as a short positive gap.
    """

    def get_metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="back_to_back_meetings",
            title="Back-to-back meetings",
            description="Adjacent meetings with too little buffer between them",
            kind=InsightKind.WARNING,
        )

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        threshold = timedelta(minutes=context.back_to_back_gap_minutes)
        meetings = [event for event in snapshot.events if event.is_meeting]

        insights = []
        for current, following in zip(meetings, meetings[1:]):
            gap = following.start - current.end
            if gap >= threshold:
                continue
            minutes = int(gap.total_seconds() // 60)
            if minutes < 0:
                detail = f"overlaps by {-minutes} min"
            else:
                detail = f"has only a {minutes} min gap"
            insights.append(self.emit(
                f"'{current.title}' ({format_clock(current.start, context.tz)}-"
                f"{format_clock(current.end, context.tz)}) {detail} before "
                f"'{following.title}' ({format_clock(following.start, context.tz)}).",
                action="Add a buffer between meetings",
                entity_ids=[current.id, following.id],
            ))
        return insights
