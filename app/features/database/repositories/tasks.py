"""
Tasks Repository - Task data access operations.

Handles all task-related database operations including:
- Creating and updating renovation tasks
- Listing tasks newest first, optionally by status
- Progress updates (completion percentage, done/blocked transitions)
"""

from typing import List, Optional

from app.features.database.models import Task, TaskCreate, TaskStatus, TaskUpdate
from app.features.database.repositories.base import BaseRepository


class TasksRepository(BaseRepository[Task]):
    """Repository for task operations."""

    table = "tasks"
    entity = "task"
    record_model = Task
    create_model = TaskCreate
    update_model = TaskUpdate

    def list_query(self, status: Optional[str] = None, limit: Optional[int] = None):
        query = self.query()
        if status:
            query = query.eq("status", TaskStatus(status).value)
        query = query.order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        return query

    async def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[Task]:
        """Get tasks, most recently created first."""
        return await self.fetch(self.list_query(status=status, limit=limit))

    async def set_progress(self, task_id: str, completion_percentage: int) -> None:
        """Record progress; reaching 100% marks the task done."""
        updates = {"completion_percentage": completion_percentage}
        if completion_percentage >= 100:
            updates["status"] = TaskStatus.DONE.value
        await self.update(task_id, updates)

    async def complete(self, task_id: str) -> None:
        """Mark a task as done."""
        await self.update(task_id, {
            "status": TaskStatus.DONE.value,
            "completion_percentage": 100,
        })
