import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import get_db
from app.api.models import TaskProgressRequest
from app.features.database import DatabaseClient
from app.features.database.models import Task, TaskCreate, TaskStatus, TaskUpdate
from app.shared.errors import RecordNotFoundError

router = APIRouter(tags=["Tasks"])
logger = logging.getLogger("RenoDesk.API.Tasks")


async def _get_or_404(db: DatabaseClient, task_id: str) -> Task:
    task = await db.tasks.get(task_id)
    if task is None:
        raise RecordNotFoundError("task", "get", task_id)
    return task


@router.post("/tasks", response_model=Task, status_code=201)
async def create_task(request: TaskCreate, db: DatabaseClient = Depends(get_db)):
    return await db.tasks.create(request)


@router.get("/tasks", response_model=List[Task])
async def list_tasks(status: Optional[TaskStatus] = None, db: DatabaseClient = Depends(get_db)):
    """Tasks, newest first, optionally for one status column."""
    return await db.tasks.list(status=status.value if status else None)


@router.get("/tasks/{task_id}", response_model=Task)
async def get_task(task_id: str, db: DatabaseClient = Depends(get_db)):
    return await _get_or_404(db, task_id)


@router.patch("/tasks/{task_id}", response_model=Task)
async def update_task(task_id: str, request: TaskUpdate, db: DatabaseClient = Depends(get_db)):
    await db.tasks.update(task_id, request)
    return await _get_or_404(db, task_id)


@router.post("/tasks/{task_id}/progress", response_model=Task)
async def set_task_progress(task_id: str, request: TaskProgressRequest, db: DatabaseClient = Depends(get_db)):
    logger.info(f"Task {task_id} progress set to {request.completion_percentage}%")
    await db.tasks.set_progress(task_id, request.completion_percentage)
    return await _get_or_404(db, task_id)
