"""
Time entry editing

Every mutation rewrites the task's entry list together with its aggregate
time spent in a single document update.
"""

from datetime import datetime
from typing import List, Optional
from taskwise.models.task import Task, TimeEntry, recompute_time_spent
from taskwise.services.task_repository import TaskRepository
from taskwise.utils.date_utils import same_calendar_day
from taskwise.utils.error_handler import NotFoundError, ValidationError
from taskwise.utils.logger import logger


def validate_entry(start_time: datetime, end_time: datetime, field: str = "end_time"):
    """
    Check a manually entered interval

    Args:
        start_time: Interval start
        end_time: Interval end
        field: Field to blame when the interval is invalid

    Raises:
        ValidationError: If end is not after start, or they are on different days
    """
    if end_time <= start_time:
        raise ValidationError("End time must be after start time.", field=field)
    if not same_calendar_day(start_time, end_time):
        raise ValidationError("Start and end time must be on the same day.", field=field)


def replace_entry(entries: List[TimeEntry], updated: TimeEntry) -> List[TimeEntry]:
    """New entry list with the entry of the same ID replaced"""
    return [updated if e.id == updated.id else e for e in entries]


def remove_entry(entries: List[TimeEntry], entry_id: str) -> List[TimeEntry]:
    """New entry list without the given ID (unchanged if absent)"""
    return [e for e in entries if e.id != entry_id]


def time_log(task: Task) -> List[TimeEntry]:
    """Entries of a task, most recent first"""
    return sorted(task.time_entries, key=lambda e: e.start_time, reverse=True)


class TimeEntryService:
    """Service for creating, editing and deleting time entries"""

    def __init__(self, repository: TaskRepository):
        """
        Initialize time entry service

        Args:
            repository: Task repository
        """
        self.repository = repository
        self.logger = logger

    async def _save_entries(self, user_id: str, task_id: str, entries: List[TimeEntry]) -> Task:
        time_spent = recompute_time_spent(entries)
        task = await self.repository.update_fields(
            user_id,
            task_id,
            {
                "timeEntries": [e.model_dump(by_alias=True) for e in entries],
                "timeSpent": time_spent,
            },
        )
        self.logger.debug(f"Task {task_id}: {len(entries)} entries, {time_spent}s spent")
        return task

    async def append_entry(self, user_id: str, task_id: str, entry: TimeEntry) -> Task:
        """
        Append a finished timer interval to a task

        Args:
            user_id: Acting user
            task_id: Task ID
            entry: Entry produced by stopping the timer

        Returns:
            Updated task
        """
        task = await self.repository.get(user_id, task_id)
        entries = task.time_entries + [entry]
        self.logger.info(f"Logged {entry.duration}s on task {task_id}")
        return await self._save_entries(user_id, task_id, entries)

    async def add_entry(
        self,
        user_id: str,
        task_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> Task:
        """
        Add a manual time entry

        Args:
            user_id: Acting user
            task_id: Task ID
            start_time: Interval start
            end_time: Interval end

        Returns:
            Updated task

        Raises:
            ValidationError: If the interval is invalid
        """
        validate_entry(start_time, end_time)
        task = await self.repository.get(user_id, task_id)
        entry = TimeEntry.from_interval(start_time, end_time)
        self.logger.info(f"Manual entry {entry.id} ({entry.duration}s) on task {task_id}")
        return await self._save_entries(user_id, task_id, task.time_entries + [entry])

    async def update_entry(
        self,
        user_id: str,
        task_id: str,
        entry_id: str,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> Task:
        """
        Edit the interval of an existing entry, keeping its ID

        Args:
            user_id: Acting user
            task_id: Task ID
            entry_id: Entry ID
            start_time: New start (unchanged when omitted)
            end_time: New end (unchanged when omitted)

        Returns:
            Updated task

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If the resulting interval is invalid
        """
        task = await self.repository.get(user_id, task_id)
        entry = task.find_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Time entry {entry_id} not found")

        new_start = start_time or entry.start_time
        new_end = end_time or entry.end_time
        blamed = "start_time" if start_time is not None and end_time is None else "end_time"
        validate_entry(new_start, new_end, field=blamed)

        updated = TimeEntry.from_interval(new_start, new_end, entry_id=entry.id)
        self.logger.info(f"Edited entry {entry_id} on task {task_id}")
        return await self._save_entries(user_id, task_id, replace_entry(task.time_entries, updated))

    async def delete_entry(self, user_id: str, task_id: str, entry_id: str) -> Task:
        """
        Delete a time entry (no-op if it does not exist)

        Args:
            user_id: Acting user
            task_id: Task ID
            entry_id: Entry ID

        Returns:
            Task after the deletion
        """
        task = await self.repository.get(user_id, task_id)
        if task.find_entry(entry_id) is None:
            self.logger.debug(f"Entry {entry_id} not on task {task_id}, nothing to delete")
            return task
        self.logger.info(f"Deleted entry {entry_id} from task {task_id}")
        return await self._save_entries(user_id, task_id, remove_entry(task.time_entries, entry_id))
