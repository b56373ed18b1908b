"""
Rule-based insights feed for FlowSync.

Turns a snapshot of today's events, open tasks and pending appointments
into an ordered list of advisory insights.
"""

from .base import (
    BaseRule,
    EvaluationContext,
    Insight,
    InsightKind,
    RuleMetadata,
)
from .evaluator import InsightEvaluator, evaluate_insights
from .schema import Appointment, DataSnapshot, Event, Task

__all__ = [
    "BaseRule",
    "EvaluationContext",
    "Insight",
    "InsightKind",
    "RuleMetadata",
    "InsightEvaluator",
    "evaluate_insights",
    "Appointment",
    "DataSnapshot",
    "Event",
    "Task",
]
