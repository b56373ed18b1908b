"""
Insight rule evaluator.

Single-pass, synchronous evaluation of the registered rules over one
consistent data snapshot. Performs no I/O.
"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence
import logging

from .base import BaseRule, EvaluationContext, Insight, InsightKind
from .rules import DEFAULT_RULES
from .schema import Appointment, DataSnapshot, Event, Task
from utils.time_helpers import reference_tz, utc_now

logger = logging.getLogger(__name__)

FALLBACK_RULE_ID = "balanced_day"


def balanced_day_insight() -> Insight:
    """The single tip emitted when no rule fires."""
    return Insight(
        kind=InsightKind.TIP,
        message="Your day looks well-balanced. Keep it up!",
        rule_id=FALLBACK_RULE_ID,
    )


class InsightEvaluator:
    """Runs rules in registration order and applies the fallback."""

    def __init__(self, rules: Optional[Iterable[BaseRule]] = None):
        if rules is None:
            rules = [rule_cls() for rule_cls in DEFAULT_RULES]
        self._rules: List[BaseRule] = list(rules)

    @property
    def rules(self) -> List[BaseRule]:
        return list(self._rules)

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        """
        Evaluate every rule against the snapshot.

        Events are sorted chronologically here; callers need not pre-sort.
        The result is never empty.
        """
        ordered = replace(
            snapshot,
            events=sorted(snapshot.events, key=lambda e: (e.start, e.end, e.id)),
        )

        insights: List[Insight] = []
        for rule in self._rules:
            emitted = rule.evaluate(ordered, context)
            if emitted:
                logger.debug(f"Rule {rule.id} emitted {len(emitted)} insight(s)")
            insights.extend(emitted)

        if not insights:
            insights.append(balanced_day_insight())
        return insights


def evaluate_insights(
    events: Sequence[Event],
    tasks: Sequence[Task],
    appointments: Sequence[Appointment],
    now: Optional[datetime] = None,
    back_to_back_gap_minutes: int = 15,
    meeting_heavy_threshold: int = 4,
    tz=None,
) -> List[Insight]:
    """Convenience wrapper around InsightEvaluator with the default rules."""
    context = EvaluationContext(
        now=now or utc_now(),
        tz=tz or reference_tz(),
        back_to_back_gap_minutes=back_to_back_gap_minutes,
        meeting_heavy_threshold=meeting_heavy_threshold,
    )
    snapshot = DataSnapshot(events=list(events), tasks=list(tasks), appointments=list(appointments))
    return InsightEvaluator().evaluate(snapshot, context)
