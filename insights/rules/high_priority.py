"""High-priority task load."""

from typing import List

from ..base import BaseRule, EvaluationContext, Insight, InsightKind, RuleMetadata
from ..schema import DataSnapshot


class HighPriorityTasksRule(BaseRule):

    def get_metadata(self) -> RuleMetadata:
        return RuleMetadata(
            id="high_priority_tasks",
            title="High-priority workload",
            description="Open tasks marked high priority",
            kind=InsightKind.ALERT,
        )

    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        high = [task for task in snapshot.tasks if task.priority == "high"]
        if not high:
            return []

        noun = "task" if len(high) == 1 else "tasks"
        return [self.emit(
            f"You have {len(high)} high-priority {noun} open.",
            action="Schedule focus time for them",
            entity_ids=sorted(task.id for task in high),
        )]
