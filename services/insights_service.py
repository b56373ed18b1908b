"""
Insights Service Layer

Fetches a consistent data snapshot for one user, runs the rule evaluator
over it, and falls back to a last-known-good or default insight set when
the snapshot cannot be assembled.
"""

import asyncio
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from config import settings
from insights.base import EvaluationContext, Insight, InsightKind
from insights.evaluator import InsightEvaluator
from insights.schema import DataSnapshot
from services.data_sources import DataSource, DataUnavailable, get_data_source
from utils.time_helpers import day_window, reference_tz, utc_now

logger = logging.getLogger(__name__)

SOURCE_EVALUATED = "evaluated"
SOURCE_LAST_KNOWN_GOOD = "last-known-good"
SOURCE_DEFAULT = "default"

DEFAULT_INSIGHTS = [
    Insight(InsightKind.TIP, "Your peak focus time is 9-11 AM. Perfect for deep work!",
            rule_id="default_peak_focus", action="Schedule important tasks"),
    Insight(InsightKind.SUGGESTION, "Insights are temporarily unavailable. Review your calendar for tight gaps.",
            rule_id="default_review_calendar", action="Open calendar"),
]


class InsightsService:
    """
    Service layer for producing a user's insights feed.

    The evaluator only ever sees a complete snapshot: if any of the three
    reads fails, it is not invoked for that request.
    """

    def __init__(self, data_source: Optional[DataSource] = None,
                 evaluator: Optional[InsightEvaluator] = None,
                 max_cached_users: Optional[int] = None):
        self._data_source = data_source
        self._evaluator = evaluator or InsightEvaluator()
        self._last_known_good: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        self._max_cached_users = max_cached_users or settings.INSIGHTS_CACHE_MAX_USERS

    @property
    def data_source(self) -> DataSource:
        return self._data_source or get_data_source()

    def get_rules(self) -> List[Dict[str, Any]]:
        """Metadata for every registered rule, in evaluation order."""
        return [rule.metadata.to_dict() for rule in self._evaluator.rules]

    async def fetch_snapshot(self, user_id: str, now: datetime) -> DataSnapshot:
        """
        Fetch today's events, open tasks and pending appointments concurrently.

        Raises:
            DataUnavailable: If any of the three collections cannot be read
        """
        source = self.data_source
        window = day_window(now)
        events, tasks, appointments = await asyncio.gather(
            asyncio.to_thread(source.fetch_today_events, user_id, window),
            asyncio.to_thread(source.fetch_open_tasks, user_id),
            asyncio.to_thread(source.fetch_pending_appointments, user_id, window),
        )
        return DataSnapshot(events=events, tasks=tasks, appointments=appointments)

    async def get_insights(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Produce the insights feed for a user.

        Returns:
            {
                "insights": [<insight dict>, ...],
                "source": "evaluated" | "last-known-good" | "default",
                "evaluatedAt": <ISO timestamp>
            }
        """
        now = now or utc_now()

        try:
            snapshot = await self.fetch_snapshot(user_id, now)
        except DataUnavailable as e:
            return self._fallback(user_id, now, e)

        thresholds = await asyncio.to_thread(settings.get_insight_thresholds)
        context = EvaluationContext(
            now=now,
            tz=reference_tz(),
            back_to_back_gap_minutes=thresholds['back_to_back_gap_minutes'],
            meeting_heavy_threshold=thresholds['meeting_heavy_threshold'],
        )
        insights = [insight.to_dict() for insight in self._evaluator.evaluate(snapshot, context)]
        self._remember(user_id, insights)

        logger.info(f"Evaluated {len(insights)} insights for {user_id} "
                    f"({len(snapshot.events)} events, {len(snapshot.tasks)} open tasks, "
                    f"{len(snapshot.appointments)} pending appointments)")
        return {
            "insights": insights,
            "source": SOURCE_EVALUATED,
            "evaluatedAt": now.isoformat(),
        }

    def _remember(self, user_id: str, insights: List[Dict[str, Any]]) -> None:
        """Store a user's latest evaluation, evicting the least recently evaluated users."""
        self._last_known_good[user_id] = insights
        self._last_known_good.move_to_end(user_id)
        while len(self._last_known_good) > self._max_cached_users:
            self._last_known_good.popitem(last=False)

    def _fallback(self, user_id: str, now: datetime, error: DataUnavailable) -> Dict[str, Any]:
        cached = self._last_known_good.get(user_id)
        if cached is not None:
            logger.warning(f"Serving last-known-good insights for {user_id}: {error}")
            return {"insights": list(cached), "source": SOURCE_LAST_KNOWN_GOOD,
                    "evaluatedAt": now.isoformat()}

        logger.warning(f"Serving default insights for {user_id}: {error}")
        return {"insights": [insight.to_dict() for insight in DEFAULT_INSIGHTS],
                "source": SOURCE_DEFAULT, "evaluatedAt": now.isoformat()}


# Global service instance
_insights_service: Optional[InsightsService] = None


def get_insights_service() -> InsightsService:
    """Get or create the global insights service instance."""
    global _insights_service
    if _insights_service is None:
        _insights_service = InsightsService()
    return _insights_service


def reset_insights_service() -> None:
    """Drop the global instance, clearing last-known-good state."""
    global _insights_service
    _insights_service = None
