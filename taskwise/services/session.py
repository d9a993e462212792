"""
Per-user session state

A session holds what one signed-in user is looking at: the latest task
snapshot, the selected day, the timer and the task whose time log is open.
Failed actions come back as notifications instead of exceptions.
"""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel
from taskwise.models.response import Notification
from taskwise.models.suggestion import PrioritySuggestion
from taskwise.models.task import Task, TaskForm
from taskwise.services.priority_service import PriorityService
from taskwise.services.task_manager import TaskManager
from taskwise.services.task_projection import due_today_count, overdue_tasks, tasks_for_day
from taskwise.services.task_subscription import relocate
from taskwise.services.time_entry_service import TimeEntryService
from taskwise.services.timer import TimerState, elapsed_seconds, start_timer, stop_timer
from taskwise.utils.date_utils import DateLike, calendar_day, format_deadline, get_current_date, get_current_datetime
from taskwise.utils.error_handler import (
    SuggestionError,
    TaskWiseError,
    TimerConflictError,
    ValidationError,
    error_notification,
)
from taskwise.utils.formatters import format_due_today, format_timer_started, format_timer_stopped
from taskwise.utils.logger import logger


class PriorityOutcome(BaseModel):
    """Form after a suggestion request, with the suggestion or the failure"""
    form: TaskForm
    suggestion: Optional[PrioritySuggestion] = None
    notification: Optional[Notification] = None


class Session:
    """State and actions of one signed-in user"""

    def __init__(
        self,
        user_id: str,
        task_manager: TaskManager,
        time_entry_service: TimeEntryService,
        priority_service: Optional[PriorityService] = None,
    ):
        """
        Initialize session

        Args:
            user_id: Signed-in user
            task_manager: Task CRUD service
            time_entry_service: Time entry service
            priority_service: Priority suggestion service (optional)
        """
        self.user_id = user_id
        self.task_manager = task_manager
        self.time_entry_service = time_entry_service
        self.priority_service = priority_service
        self.tasks: List[Task] = []
        self.selected_date: date = get_current_date()
        self.timer: TimerState = TimerState.idle()
        self.open_task_id: Optional[str] = None
        self.logger = logger

    def apply_snapshot(self, tasks: List[Task]) -> Optional[Task]:
        """
        Replace the task list with a newer snapshot

        Args:
            tasks: Complete task list

        Returns:
            Current version of the task whose time log is open, if any
        """
        self.tasks = list(tasks)
        if self.timer.is_running and relocate(self.tasks, self.timer.task_id) is None:
            self.logger.warning(f"Timed task {self.timer.task_id} is gone, resetting timer")
            self.timer = TimerState.idle()
        open_task = relocate(self.tasks, self.open_task_id)
        if open_task is None:
            self.open_task_id = None
        return open_task

    def select_date(self, day: DateLike):
        """Change the day whose tasks are listed"""
        self.selected_date = calendar_day(day)

    def visible_tasks(self) -> List[Task]:
        """Tasks due on the selected day, in display order"""
        return tasks_for_day(self.tasks, self.selected_date)

    def overdue(self, today: Optional[DateLike] = None) -> List[Task]:
        """Incomplete tasks due before today"""
        return overdue_tasks(self.tasks, today or get_current_date())

    def due_today_notification(self, today: Optional[DateLike] = None) -> Optional[Notification]:
        """Reminder about incomplete tasks due today, None if there are none"""
        count = due_today_count(self.tasks, today or get_current_date())
        return format_due_today(count) if count else None

    async def _find_task(self, task_id: str) -> Task:
        task = relocate(self.tasks, task_id)
        if task is None:
            task = await self.task_manager.get_task(self.user_id, task_id)
        return task

    async def start_timer(self, task_id: str, now: Optional[datetime] = None) -> Notification:
        """
        Start timing a task

        Args:
            task_id: Task to time
            now: Start moment (current time when omitted)

        Returns:
            "Timer Started", or a destructive notification when another
            task's timer runs or the task is not accessible
        """
        try:
            task = await self._find_task(task_id)
            self.timer = start_timer(self.timer, task_id, now or get_current_datetime())
        except TimerConflictError as e:
            self.logger.info(f"Timer for {task_id} refused, {e.running_task_id} is running")
            return error_notification(e, "Another Timer Active")
        except TaskWiseError as e:
            return error_notification(e, "Timer Error")
        self.logger.info(f"Timer started for task {task_id}")
        return format_timer_started(task)

    async def stop_timer(self, task_id: str, now: Optional[datetime] = None) -> Notification:
        """
        Stop the running timer and log the interval on its task

        The timer goes idle even if saving the entry fails.

        Args:
            task_id: Task whose timer is running
            now: Stop moment (current time when omitted)

        Returns:
            "Timer Stopped", or a destructive notification on failure
        """
        try:
            self.timer, entry = stop_timer(self.timer, task_id, now or get_current_datetime())
        except TimerConflictError as e:
            return error_notification(e, "Timer Error")

        try:
            task = await self.time_entry_service.append_entry(self.user_id, task_id, entry)
        except TaskWiseError as e:
            self.logger.error(f"Could not save timer entry for task {task_id}: {e.message}")
            return error_notification(e, "Timer Error")

        self.tasks = [task if t.id == task.id else t for t in self.tasks]
        self.logger.info(f"Timer stopped for task {task_id} after {entry.duration}s")
        return format_timer_stopped(task)

    def elapsed(self, now: Optional[datetime] = None) -> int:
        """Seconds on the running timer, 0 when idle"""
        return elapsed_seconds(self.timer, now or get_current_datetime())

    def open_time_log(self, task_id: Optional[str]):
        """Open the time log of a task (None closes it)"""
        self.open_task_id = task_id

    def open_time_log_task(self) -> Optional[Task]:
        """Current version of the task whose time log is open"""
        return relocate(self.tasks, self.open_task_id)

    async def suggest_priority(self, form: TaskForm) -> PriorityOutcome:
        """
        Ask for a priority and apply it to the form

        On failure the form keeps its previous priority.

        Args:
            form: Current form values

        Returns:
            PriorityOutcome
        """
        text = form.suggestion_text()
        if not text:
            error = ValidationError("Please enter a title or description first.", field="title")
            return PriorityOutcome(form=form, notification=error_notification(error, "AI Suggestion Failed"))
        if self.priority_service is None:
            return PriorityOutcome(
                form=form,
                notification=error_notification(SuggestionError(), "AI Suggestion Failed"),
            )

        try:
            suggestion = await self.priority_service.suggest_priority(text, format_deadline(form.due_date))
        except TaskWiseError as e:
            return PriorityOutcome(form=form, notification=error_notification(e, "AI Suggestion Failed"))

        updated = form.model_copy(update={"priority": suggestion.priority})
        return PriorityOutcome(form=updated, suggestion=suggestion)
