"""Pending appointment requests."""

from typing import List

from ..base import BaseRule, EvaluationContext, Insight, InsightKind, RuleMetadata
from ..schema import DataSnapshot


class PendingAppointmentsRule(BaseRule):

    def get_metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="pending_appointments",
            title="Pending appointments",
            description="Booking requests waiting for confirmation",
            kind=InsightKind.TIP,
        )

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        pending = snapshot.appointments
        if not pending:
            return []

        noun = "appointment request" if len(pending) == 1 else "appointment requests"
        return [self.emit(
            f"You have {len(pending)} pending {noun}.",
            action="Review booking requests",
            entity_ids=sorted(appointment.id for appointment in pending),
        )]
