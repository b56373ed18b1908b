"""
Insights API routes (FastAPI)
Serves the rule-based insights feed and the rule catalogue
"""

import logging

from fastapi import APIRouter, Depends

from routes.common import error_response, get_user_id
from services.insights_service import get_insights_service

logger = logging.getLogger(__name__)

insights_bp = APIRouter(prefix='/api/insights', tags=['insights'])


@insights_bp.get('')
async def get_insights(user_id: str = Depends(get_user_id)):
    """
    Evaluate today's insights for the caller.

    Each insight carries a `key` that stays the same across evaluations for
    the same underlying condition, so the dashboard can keep a dismissed
    card hidden after re-fetching. Dismissal itself is never stored.
    """
    try:
        service = get_insights_service()
        result = await service.get_insights(user_id)
        return {'success': True, **result}
    except Exception as e:
        logger.error(f"Error evaluating insights: {e}")
        return error_response(str(e), 500)


@insights_bp.get('/rules')
async def get_rules():
    """List the insight rules in evaluation order."""
    service = get_insights_service()
    rules = service.get_rules()
    logger.info(f"Retrieved {len(rules)} insight rules")
    return {'success': True, 'rules': rules}
