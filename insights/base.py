"""
Base classes for the rule-based insights feed.

Every rule is a small, independent threshold check over a data snapshot.
Rules never read each other's output; the evaluator runs them in a fixed
order and concatenates what they emit.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from .schema import DataSnapshot


class InsightKind(str, Enum):
    """Severity/flavour of an insight card."""
    TIP = "tip"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    ALERT = "alert"


class Insight:
    """
    Derived, non-persisted advisory message.

    `key` is built from the rule id and the ids of the entities the insight
    is about, so a client can hide an insight and recognise it again after
    re-fetching. It is not a database identity.
    """

    def __init__(
        self,
        kind: InsightKind,
        message: str,
        rule_id: str,
        action: Optional[str] = None,
        entity_ids: Optional[List[str]] = None
    ):
        self.kind = kind
        self.message = message
        self.rule_id = rule_id
        self.action = action
        self.entity_ids = list(entity_ids or [])

    @property
    def key(self) -> str:
        if not self.entity_ids:
            return self.rule_id
        return f"{self.rule_id}:{'+'.join(self.entity_ids)}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert insight to dictionary for API responses."""
        return {
            "key": self.key,
            "type": self.kind.value,
            "message": self.message,
            "action": self.action,
            "rule": self.rule_id,
        }

    def __repr__(self) -> str:
        return f"Insight({self.kind.value}, {self.key!r}, {self.message!r})"


class RuleMetadata:
    """Metadata describing a rule for the rules listing endpoint."""

    def __init__(self, id: str, title: str, description: str, kind: InsightKind):
        self.id = id
        self.title = title
        self.description = description
        self.kind = kind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.kind.value,
        }


@dataclass
class EvaluationContext:
    """Inputs shared by every rule in one evaluation pass."""
    now: datetime
    tz: ZoneInfo
    back_to_back_gap_minutes: int = 15
    meeting_heavy_threshold: int = 4
    extra: Dict[str, Any] = field(default_factory=dict)


class BaseRule(ABC):
    """
    Abstract base class for all insight rules.

    Subclasses describe themselves via get_metadata() and produce zero or
    more insights from evaluate(). Rules must be pure: no I/O, no state
    carried between calls.
    """

    def __init__(self):
        self._metadata = self.get_metadata()

    @abstractmethod
    def get_metadata(self) -> RuleMetadata:
        """Return metadata describing this rule."""
        pass

    @abstractmethod
    def evaluate(self, snapshot: DataSnapshot, context: EvaluationContext) -> List[Insight]:
        """
        Evaluate the rule against one snapshot.

        Args:
            snapshot: Today's events (sorted by start), open tasks, pending appointments
            context: Evaluation instant, time zone and thresholds

        Returns:
            Insights emitted by this rule, possibly empty
        """
        pass

    def emit(self, message: str, action: Optional[str] = None,
             entity_ids: Optional[List[str]] = None) -> Insight:
        """Build an insight attributed to this rule."""
        return Insight(
            kind=self._metadata.kind,
            message=message,
            rule_id=self.id,
            action=action,
            entity_ids=entity_ids,
        )

    @property
    def id(self) -> str:
        return self._metadata.id

    @property
    def metadata(self) -> RuleMetadata:
        return self._metadata
