"""
Configuration API routes (FastAPI)
Handles insight thresholds and runtime settings
"""

import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from database.models import ConfigModel
from services.data_sources import get_data_source
from config import settings

logger = logging.getLogger(__name__)

config_bp = APIRouter(prefix='/api/config', tags=['config'])

# API field -> (config key, minimum accepted value)
THRESHOLD_FIELDS = {
    'backToBackGapMinutes': ('backToBackGapMinutes', 0),
    'meetingHeavyThreshold': ('meetingHeavyThreshold', 0),
}


@config_bp.get('/')
async def get_config_root():
    """Get current configuration"""
    thresholds = settings.get_insight_thresholds()
    return {
        'backToBackGapMinutes': thresholds['back_to_back_gap_minutes'],
        'meetingHeavyThreshold': thresholds['meeting_heavy_threshold'],
        'dataSource': get_data_source().name,
        'timezone': settings.TIMEZONE,
    }


@config_bp.put('/')
async def update_config_root(request: Request):
    """Update insight thresholds in the database"""
    data = await request.json()
    try:
        updates = {}
        for field, (key, minimum) in THRESHOLD_FIELDS.items():
            if field not in data:
                continue
            value = data[field]
            if isinstance(value, bool) or not isinstance(value, int):
                return JSONResponse({'error': f'{field} must be an integer'}, status_code=400)
            if value < minimum:
                return JSONResponse({'error': f'{field} must be >= {minimum}'}, status_code=400)
            updates[key] = value

        if not updates:
            return JSONResponse({'error': 'No valid configuration fields provided'}, status_code=400)

        for key, value in updates.items():
            ConfigModel.set(key, value)

        logger.info(f"Updated configuration: {updates}")
        return {'success': True, 'updated': updates}

    except Exception as e:
        logger.error(f"Failed to update configuration: {e}")
        return JSONResponse({'error': f'Failed to update configuration: {str(e)}'}, status_code=500)
