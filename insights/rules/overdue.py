"""Overdue tasks."""

from typing import List

from ..base import BaseRule, EvaluationContext, Insight, InsightKind, RuleMetadata
from ..schema import DataSnapshot


class OverdueTasksRule(BaseRule):
    """Open tasks whose due timestamp is earlier than the evaluation instant."""

    def get_metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="overdue_tasks",
            title="Overdue tasks",
            description="Open tasks past their due date",
            kind=InsightKind.WARNING,
        )

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        overdue = [task for task in snapshot.tasks
                   if task.due is not None and task.due < context.now]
        if not overdue:
            return []

        noun = "task is" if len(overdue) == 1 else "tasks are"
        return [self.emit(
            f"{len(overdue)} {noun} overdue.",
            action="Review and reschedule",
            entity_ids=sorted(task.id for task in overdue),
        )]
