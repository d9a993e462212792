"""
Task and time entry models
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from taskwise.config.constants import (
    CUSTOM_CATEGORY,
    TASK_CATEGORIES,
    TASK_DEFAULT_CATEGORY,
    TASK_DEFAULT_PRIORITY,
)
from taskwise.utils.date_utils import seconds_between, to_aware


def new_id() -> str:
    """Generate a document identifier"""
    return uuid.uuid4().hex


class Priority(str, Enum):
    """Task priority levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: Any) -> "Priority":
        """
        Interpret any stored priority shape as a Priority

        Older documents carry an integer on a 1-4 scale or a labelled value
        object ({"label": "High", "value": 3}) instead of the label string.

        Args:
            value: Stored priority value

        Returns:
            Priority (medium when the value is not recognised)
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            for key in ("label", "value"):
                if key in value:
                    coerced = cls._from_scalar(value[key])
                    if coerced is not None:
                        return coerced
            return cls(TASK_DEFAULT_PRIORITY)
        coerced = cls._from_scalar(value)
        return coerced if coerced is not None else cls(TASK_DEFAULT_PRIORITY)

    @classmethod
    def _from_scalar(cls, value: Any) -> Optional["Priority"]:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            level = int(value)
            if level <= 1:
                return cls.LOW
            if level == 2:
                return cls.MEDIUM
            return cls.HIGH
        if isinstance(value, str):
            text = value.strip().lower()
            if text.lstrip("-").isdigit():
                return cls._from_scalar(int(text))
            try:
                return cls(text)
            except ValueError:
                return None
        return None


class TimeEntry(BaseModel):
    """One recorded interval of work on a task"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    duration: int = Field(..., ge=0)  # seconds

    @field_validator("start_time", "end_time")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return to_aware(value)

    @model_validator(mode="after")
    def _check_duration(self) -> "TimeEntry":
        expected = seconds_between(self.start_time, self.end_time)
        if expected < 0:
            raise ValueError("endTime must not be before startTime")
        if self.duration != expected:
            raise ValueError(
                f"duration {self.duration}s does not match interval of {expected}s"
            )
        return self

    @classmethod
    def from_interval(
        cls,
        start_time: datetime,
        end_time: datetime,
        entry_id: Optional[str] = None,
    ) -> "TimeEntry":
        """
        Build an entry from its interval, computing the duration

        Args:
            start_time: Interval start
            end_time: Interval end
            entry_id: Existing identifier to keep (a new one is assigned otherwise)

        Returns:
            TimeEntry
        """
        data: Dict[str, Any] = {
            "start_time": start_time,
            "end_time": end_time,
            "duration": max(seconds_between(start_time, end_time), 0),
        }
        if entry_id:
            data["id"] = entry_id
        return cls(**data)


def recompute_time_spent(entries: List[TimeEntry]) -> int:
    """Aggregate time spent: the sum of all entry durations"""
    return sum(entry.duration for entry in entries)


class Task(BaseModel):
    """Task model"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., alias="userId")
    title: str
    description: Optional[str] = None
    due_date: datetime = Field(..., alias="dueDate")
    priority: Priority = Priority.MEDIUM
    category: str = TASK_DEFAULT_CATEGORY
    is_completed: bool = Field(False, alias="isCompleted")
    time_spent: int = Field(0, alias="timeSpent", ge=0)  # seconds
    time_entries: List[TimeEntry] = Field(default_factory=list, alias="timeEntries")
    order: Optional[int] = None
    series_id: Optional[str] = Field(None, alias="seriesId")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Priority:
        return Priority.coerce(value)

    @field_validator("due_date")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return to_aware(value)

    @field_validator("time_entries", mode="before")
    @classmethod
    def _entries_or_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _sync_time_spent(self) -> "Task":
        if self.time_entries:
            self.time_spent = recompute_time_spent(self.time_entries)
        return self

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store (camelCase keys, native datetimes)"""
        data = self.model_dump(by_alias=True)
        data["priority"] = self.priority.value
        return data

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Task":
        """Deserialize a document read from the store"""
        return cls.model_validate(document)

    def find_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Get time entry by ID"""
        for entry in self.time_entries:
            if entry.id == entry_id:
                return entry
        return None


class TaskCreate(BaseModel):
    """Task creation model"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: datetime = Field(..., alias="dueDate")
    priority: Priority = Priority.MEDIUM
    category: str = Field(TASK_DEFAULT_CATEGORY, min_length=1)
    series_id: Optional[str] = Field(None, alias="seriesId")

    @field_validator("title", "category")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Priority:
        return Priority.coerce(value)

    @field_validator("due_date")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return to_aware(value)


class TaskUpdate(BaseModel):
    """Task update model"""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    priority: Optional[Priority] = None
    category: Optional[str] = None
    order: Optional[int] = None
    series_id: Optional[str] = Field(None, alias="seriesId")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Optional[Priority]:
        return None if value is None else Priority.coerce(value)

    @field_validator("due_date")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_aware(value)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly supplied by the caller, in document form"""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        if data.get("priority") is not None:
            data["priority"] = Priority(data["priority"]).value
        return data


class TaskForm(BaseModel):
    """Values of the create/edit task form"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: Optional[str] = None
    due_date: datetime = Field(..., alias="dueDate")
    priority: Priority = Priority.MEDIUM
    category: str = TASK_DEFAULT_CATEGORY
    custom_category: Optional[str] = Field(None, alias="customCategory")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Priority:
        return Priority.coerce(value)

    @classmethod
    def from_task(cls, task: Task) -> "TaskForm":
        """Prefill the form from an existing task"""
        is_custom = task.category not in TASK_CATEGORIES
        return cls(
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            priority=task.priority,
            category=CUSTOM_CATEGORY if is_custom else task.category,
            custom_category=task.category if is_custom else "",
        )

    def suggestion_text(self) -> str:
        """Text sent to the priority suggestion: title and description"""
        return f"{self.title} {self.description or ''}".strip()


class TimeEntryInput(BaseModel):
    """Manual time entry"""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return to_aware(value)


class TimeEntryPatch(BaseModel):
    """Edit of an existing entry; omitted bounds stay as they are"""

    model_config = ConfigDict(populate_by_name=True)

    start_time: Optional[datetime] = Field(None, alias="startTime")
    end_time: Optional[datetime] = Field(None, alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_aware(value)
