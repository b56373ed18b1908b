"""
Shared helpers for the FlowSync API routes.
"""

from typing import Optional

from fastapi import Header
from fastapi.responses import JSONResponse

from config import settings


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Resolve the caller; identity is asserted upstream by the identity provider."""
    user_id = (x_user_id or '').strip()
    return user_id or settings.DEFAULT_USER_ID


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({'success': False, 'error': message}, status_code=status_code)


def not_found(kind: str, record_id: int) -> JSONResponse:
    return error_response(f"{kind} {record_id} not found", 404)
