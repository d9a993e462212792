"""
Message formatting utilities
"""

from datetime import date
from taskwise.models.task import Task
from taskwise.models.response import Notification
from taskwise.utils.date_utils import calendar_day, get_current_date


def format_duration(total_seconds: int) -> str:
    """
    Format a duration for the time log (e.g. "1h 5m 3s")

    Zero-valued parts are dropped; an empty duration reads "0s".

    Args:
        total_seconds: Duration in seconds

    Returns:
        Formatted duration
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if seconds > 0 or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def format_time_summary(total_seconds: int) -> str:
    """
    Format total tracked time for the progress card

    Args:
        total_seconds: Duration in seconds

    Returns:
        "Less than a minute" below 60s, otherwise hours and minutes
    """
    if total_seconds < 60:
        return "Less than a minute"
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def format_hours_minutes(total_seconds: int) -> str:
    """Format as "Xh Ym" (overview totals)"""
    return f"{total_seconds // 3600}h {(total_seconds % 3600) // 60}m"


def format_due_label(due: date) -> str:
    """Badge label for a due date: "Today" or e.g. "Mar 4" """
    day = calendar_day(due)
    if day == get_current_date():
        return "Today"
    return f"{day.strftime('%b')} {day.day}"


def format_task_created(task: Task) -> Notification:
    """Notification after a task was created"""
    return Notification(title="Task Created", description=f'"{task.title}" has been added.')


def format_task_updated(task: Task) -> Notification:
    """Notification after a task was updated"""
    return Notification(title="Task Updated", description=f'"{task.title}" has been updated.')


def format_task_deleted(task: Task) -> Notification:
    """Notification after a task was deleted"""
    return Notification(
        title="Task Deleted",
        description=f'"{task.title}" has been removed.',
        variant="destructive",
    )


def format_timer_started(task: Task) -> Notification:
    return Notification(title="Timer Started", description=f'Timing task "{task.title}".')


def format_timer_stopped(task: Task) -> Notification:
    return Notification(title="Timer Stopped", description=f'Time logged for "{task.title}".')


def format_due_today(count: int) -> Notification:
    """The "Upcoming Deadlines" reminder"""
    plural = "s" if count > 1 else ""
    return Notification(
        title="Upcoming Deadlines",
        description=f"You have {count} task{plural} due today.",
    )
