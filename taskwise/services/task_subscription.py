"""
Live task list subscription
"""

from typing import AsyncIterator, Iterable, List, Optional
from taskwise.api.document_store import DocumentStore
from taskwise.config.constants import TASKS_COLLECTION
from taskwise.models.task import Task
from taskwise.utils.logger import logger


class TaskSubscription:
    """
    Stream of a user's complete task list

    Nothing is queried until iteration starts, and every `async for` opens a
    fresh stream whose first item is the current snapshot. Leaving the loop
    (or cancelling the consuming task) unsubscribes.
    """

    def __init__(self, store: DocumentStore, user_id: str):
        """
        Initialize subscription

        Args:
            store: Document store client
            user_id: Owner of the tasks
        """
        self.store = store
        self.user_id = user_id
        self.logger = logger

    async def __aiter__(self) -> AsyncIterator[List[Task]]:
        self.logger.debug(f"Opening task stream for user {self.user_id}")
        snapshots = self.store.subscribe(TASKS_COLLECTION, {"userId": self.user_id})
        try:
            async for documents in snapshots:
                yield [Task.from_document(d) for d in documents]
        finally:
            await snapshots.aclose()
            self.logger.debug(f"Closed task stream for user {self.user_id}")


def relocate(snapshot: Iterable[Task], task_id: Optional[str]) -> Optional[Task]:
    """
    Find a task in a newer snapshot by identifier

    Args:
        snapshot: Latest task list
        task_id: ID of the task being displayed

    Returns:
        The task's current version, None if it no longer exists
    """
    if task_id is None:
        return None
    for task in snapshot:
        if task.id == task_id:
            return task
    return None
