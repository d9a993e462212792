"""
Task persistence scoped to the acting user
"""

from typing import Any, Dict, List
from taskwise.api.document_store import DocumentStore
from taskwise.config.constants import TASKS_COLLECTION
from taskwise.models.task import Task
from taskwise.utils.error_handler import NotFoundError, PermissionDeniedError
from taskwise.utils.logger import logger


class TaskRepository:
    """Reads and writes task documents, enforcing ownership"""

    def __init__(self, store: DocumentStore):
        """
        Initialize task repository

        Args:
            store: Document store client
        """
        self.store = store
        self.collection = TASKS_COLLECTION
        self.logger = logger

    async def get(self, user_id: str, task_id: str) -> Task:
        """
        Get a task owned by user

        Args:
            user_id: Acting user
            task_id: Task ID

        Returns:
            Task

        Raises:
            NotFoundError: If the task does not exist
            PermissionDeniedError: If the task belongs to someone else
        """
        document = await self.store.get(self.collection, task_id)
        if document is None:
            raise NotFoundError(f"Task {task_id} not found")
        if document.get("userId") != user_id:
            self.logger.warning(f"User {user_id} tried to access task {task_id}")
            raise PermissionDeniedError(f"Task {task_id} is not owned by {user_id}")
        return Task.from_document(document)

    async def list(self, user_id: str) -> List[Task]:
        """All tasks of a user (unordered)"""
        documents = await self.store.query(self.collection, {"userId": user_id})
        return [Task.from_document(d) for d in documents]

    async def insert(self, task: Task) -> Task:
        """Store a new task"""
        document = await self.store.insert(self.collection, task.to_document())
        return Task.from_document(document)

    async def update_fields(self, user_id: str, task_id: str, fields: Dict[str, Any]) -> Task:
        """
        Merge fields into a task owned by user (one document write)

        Args:
            user_id: Acting user
            task_id: Task ID
            fields: Document fields to set

        Returns:
            Updated task
        """
        await self.get(user_id, task_id)
        fields = {k: v for k, v in fields.items() if k not in ("id", "userId")}
        document = await self.store.update(self.collection, task_id, fields)
        return Task.from_document(document)

    async def update_many(self, user_id: str, updates: Dict[str, Dict[str, Any]]) -> List[Task]:
        """Merge fields into several tasks of one user, as one batch"""
        for task_id in updates:
            await self.get(user_id, task_id)
        documents = await self.store.update_many(self.collection, updates)
        return [Task.from_document(d) for d in documents]

    async def delete(self, user_id: str, task_id: str) -> Task:
        """
        Delete a task owned by user

        Returns:
            The deleted task
        """
        task = await self.get(user_id, task_id)
        await self.store.delete(self.collection, task_id)
        return task
