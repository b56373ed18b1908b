"""
Task API routes (FastAPI)
Handles the kanban board: listing, creating, moving and deleting tasks
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from database.models import TaskModel
from routes.common import error_response, get_user_id, not_found

logger = logging.getLogger(__name__)

tasks_bp = APIRouter(prefix='/api/tasks', tags=['tasks'])


class TaskCreateRequest(BaseModel):
    """Request body for creating a task. Accepts the dashboard's camelCase names."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: Optional[str] = None
    priority: str = 'medium'
    status: str = 'todo'
    due_at: Optional[str] = Field(None, alias='dueDate')
    duration_minutes: Optional[int] = Field(None, alias='duration')
    energy_required: Optional[int] = Field(None, alias='energyRequired')
    category: Optional[str] = None


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_at: Optional[str] = Field(None, alias='dueDate')
    duration_minutes: Optional[int] = Field(None, alias='duration')
    energy_required: Optional[int] = Field(None, alias='energyRequired')
    category: Optional[str] = None


@tasks_bp.get('')
async def list_tasks(
    status: Optional[str] = Query(None, description="Filter by status (todo, in-progress, review, done)"),
    user_id: str = Depends(get_user_id)
):
    """List the caller's tasks."""
    try:
        tasks = TaskModel.list(user_id, status=status)
        return {'success': True, 'tasks': tasks, 'count': len(tasks)}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error listing tasks: {e}")
        return error_response(str(e), 500)


@tasks_bp.post('', status_code=201)
async def create_task(body: TaskCreateRequest, user_id: str = Depends(get_user_id)):
    """Create a task on the board."""
    try:
        task = TaskModel.create(user_id, **body.model_dump())
        return {'success': True, 'task': task}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error creating task: {e}")
        return error_response(str(e), 500)


@tasks_bp.get('/{task_id}')
async def get_task(task_id: int, user_id: str = Depends(get_user_id)):
    try:
        task = TaskModel.get(user_id, task_id)
        if not task:
            return not_found('Task', task_id)
        return {'success': True, 'task': task}
    except Exception as e:
        logger.error(f"Error retrieving task {task_id}: {e}")
        return error_response(str(e), 500)


@tasks_bp.put('/{task_id}')
async def update_task(task_id: int, body: TaskUpdateRequest, user_id: str = Depends(get_user_id)):
    """
    Update a task. Moving a card between kanban columns is a status update:

        PUT /api/tasks/3  {"status": "in-progress"}
    """
    try:
        task = TaskModel.update(user_id, task_id, **body.model_dump(exclude_unset=True))
        if not task:
            return not_found('Task', task_id)
        return {'success': True, 'task': task}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {e}")
        return error_response(str(e), 500)


@tasks_bp.delete('/{task_id}')
async def delete_task(task_id: int, user_id: str = Depends(get_user_id)):
    try:
        if not TaskModel.delete(user_id, task_id):
            return not_found('Task', task_id)
        logger.info(f"Deleted task {task_id} for {user_id}")
        return JSONResponse({'success': True})
    except Exception as e:
        logger.error(f"Error deleting task {task_id}: {e}")
        return error_response(str(e), 500)
