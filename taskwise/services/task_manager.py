"""
Task management service
"""

from datetime import date, datetime, time
from typing import List, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from taskwise.config.constants import CUSTOM_CATEGORY
from taskwise.models.task import Task, TaskCreate, TaskForm, TaskUpdate
from taskwise.services.task_repository import TaskRepository
from taskwise.utils.date_utils import USER_TIMEZONE, calendar_day, to_aware
from taskwise.utils.error_handler import NotFoundError, ValidationError
from taskwise.utils.logger import logger


def resolve_category(category: Optional[str], custom_category: Optional[str]) -> str:
    """
    Resolve the category chosen in the form

    Args:
        category: Selected category
        custom_category: Free text typed when "other" is selected

    Returns:
        Category to store

    Raises:
        ValidationError: If no category is selected or the custom text is empty
    """
    if not category or not category.strip():
        raise ValidationError("Category is required", field="category")
    if category == CUSTOM_CATEGORY:
        if not custom_category or not custom_category.strip():
            raise ValidationError("Custom category cannot be empty.", field="custom_category")
        return custom_category.strip()
    return category.strip()


def _first_error_field(error: PydanticValidationError) -> str:
    errors = error.errors()
    if errors and errors[0].get("loc"):
        return str(errors[0]["loc"][0])
    return ""


_FIELD_MESSAGES = {
    "title": "Title is required",
    "dueDate": "A due date is required.",
    "due_date": "A due date is required.",
    "category": "Category is required",
    "customCategory": "Choose a category or type a custom one.",
    "priority": "Priority must be low, medium or high.",
}


class TaskManager:
    """Service for managing tasks"""

    def __init__(self, repository: TaskRepository):
        """
        Initialize task manager

        Args:
            repository: Task repository
        """
        self.repository = repository
        self.logger = logger

    async def list_tasks(self, user_id: str) -> List[Task]:
        """All tasks of a user"""
        return await self.repository.list(user_id)

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """Get a task owned by user"""
        return await self.repository.get(user_id, task_id)

    async def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """
        Create a new task

        Args:
            user_id: Owner
            data: Validated task fields

        Returns:
            Created task (not completed, no time logged)
        """
        if data.category == CUSTOM_CATEGORY:
            raise ValidationError(_FIELD_MESSAGES["customCategory"], field="category")
        task = Task(
            user_id=user_id,
            title=data.title,
            description=data.description or None,
            due_date=data.due_date,
            priority=data.priority,
            category=data.category,
            series_id=data.series_id,
            is_completed=False,
            time_spent=0,
            time_entries=[],
        )
        created = await self.repository.insert(task)
        self.logger.info(f"Task created: id='{created.id}', title='{created.title}', user='{user_id}'")
        return created

    async def create_from_form(self, user_id: str, form: TaskForm) -> Task:
        """
        Create a task from form values

        Args:
            user_id: Owner
            form: Form values

        Returns:
            Created task

        Raises:
            ValidationError: Naming the first invalid field
        """
        return await self.create_task(user_id, self.form_to_create(form))

    @staticmethod
    def form_to_create(form: TaskForm) -> TaskCreate:
        """
        Validate form values into task creation data

        Raises:
            ValidationError: Naming the first invalid field
        """
        if not form.title or not form.title.strip():
            raise ValidationError(_FIELD_MESSAGES["title"], field="title")
        category = resolve_category(form.category, form.custom_category)
        try:
            return TaskCreate(
                title=form.title,
                description=form.description,
                due_date=form.due_date,
                priority=form.priority,
                category=category,
            )
        except PydanticValidationError as e:
            field = _first_error_field(e)
            raise ValidationError(_FIELD_MESSAGES.get(field, "Invalid value"), field=field)

    async def update_task(self, user_id: str, task_id: str, changes: TaskUpdate) -> Task:
        """
        Merge supplied fields into a task

        Identifier, owner, completion and logged time are not touched here.

        Args:
            user_id: Acting user
            task_id: Task ID
            changes: Fields to change (only explicitly set ones apply)

        Returns:
            Updated task
        """
        fields = changes.changes()
        if "title" in fields:
            if not fields["title"] or not fields["title"].strip():
                raise ValidationError(_FIELD_MESSAGES["title"], field="title")
            fields["title"] = fields["title"].strip()
        if "category" in fields:
            if not fields["category"] or not fields["category"].strip():
                raise ValidationError(_FIELD_MESSAGES["category"], field="category")
            fields["category"] = fields["category"].strip()
            # "other" is a form choice, the typed text is what gets stored
            if fields["category"] == CUSTOM_CATEGORY:
                raise ValidationError(_FIELD_MESSAGES["customCategory"], field="category")
        if "priority" in fields and fields["priority"] is None:
            raise ValidationError(_FIELD_MESSAGES["priority"], field="priority")
        if "dueDate" in fields and fields["dueDate"] is None:
            raise ValidationError(_FIELD_MESSAGES["dueDate"], field="dueDate")

        if not fields:
            return await self.repository.get(user_id, task_id)

        task = await self.repository.update_fields(user_id, task_id, fields)
        self.logger.info(f"Task updated: id='{task_id}', fields={sorted(fields)}")
        return task

    async def update_from_form(self, user_id: str, task_id: str, form: TaskForm) -> Task:
        """Apply edited form values to an existing task"""
        data = self.form_to_create(form)
        changes = TaskUpdate(
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=data.priority,
            category=data.category,
        )
        return await self.update_task(user_id, task_id, changes)

    async def toggle_complete(
        self,
        user_id: str,
        task_id: str,
        is_completed: Optional[bool] = None,
    ) -> Task:
        """
        Flip (or set) the completion flag

        Args:
            user_id: Acting user
            task_id: Task ID
            is_completed: Explicit value; flips the current one when omitted

        Returns:
            Updated task
        """
        if is_completed is None:
            task = await self.repository.get(user_id, task_id)
            is_completed = not task.is_completed
        task = await self.repository.update_fields(user_id, task_id, {"isCompleted": is_completed})
        self.logger.info(f"Task {task_id} marked {'completed' if is_completed else 'incomplete'}")
        return task

    async def delete_task(self, user_id: str, task_id: str) -> Task:
        """
        Delete a task together with its time entries

        Returns:
            The deleted task
        """
        task = await self.repository.delete(user_id, task_id)
        self.logger.info(f"Task deleted: id='{task_id}', title='{task.title}'")
        return task

    async def reschedule(
        self,
        user_id: str,
        task_id: str,
        new_date: Union[date, datetime],
    ) -> Task:
        """
        Move a task to another day, keeping its time of day

        Args:
            user_id: Acting user
            task_id: Task ID
            new_date: Target day

        Returns:
            Updated task
        """
        task = await self.repository.get(user_id, task_id)
        due_local = task.due_date.astimezone(USER_TIMEZONE)
        target_day = calendar_day(to_aware(new_date) if isinstance(new_date, datetime) else new_date)
        new_due = datetime.combine(target_day, time(due_local.hour, due_local.minute, due_local.second), tzinfo=USER_TIMEZONE)
        updated = await self.repository.update_fields(user_id, task_id, {"dueDate": new_due})
        self.logger.info(f"Task {task_id} rescheduled to {target_day.isoformat()}")
        return updated

    async def reorder(self, user_id: str, ordered_ids: List[str]) -> List[Task]:
        """
        Persist a manual order for a subsequence of tasks

        Only the order field changes; tasks keep their identifiers.

        Args:
            user_id: Acting user
            ordered_ids: Task IDs in their new display order

        Returns:
            Tasks whose order changed
        """
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Task order contains duplicates", field="order")

        current = {t.id: t for t in await self.repository.list(user_id)}
        missing = [task_id for task_id in ordered_ids if task_id not in current]
        if missing:
            raise NotFoundError(f"Tasks not found: {', '.join(missing)}")

        updates = {
            task_id: {"order": position}
            for position, task_id in enumerate(ordered_ids)
            if current[task_id].order != position
        }
        if not updates:
            return []

        tasks = await self.repository.update_many(user_id, updates)
        self.logger.info(f"Reordered {len(tasks)} tasks for user {user_id}")
        return tasks
