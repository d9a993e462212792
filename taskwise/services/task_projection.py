"""
Read-only views over a user's task list
"""

from datetime import date
from typing import Dict, Iterable, List, Set
from pydantic import BaseModel
from taskwise.models.task import Task
from taskwise.utils.date_utils import (
    DateLike,
    calendar_day,
    days_of_week,
    weeks_of_month,
)


class TaskProgress(BaseModel):
    """Counts and tracked time for the progress card"""
    total_tasks: int
    completed_tasks: int
    total_time_spent: int

    @property
    def percentage(self) -> float:
        if self.total_tasks == 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100


class OverviewBucket(BaseModel):
    """One bar of the weekly/monthly time chart"""
    name: str
    total: int  # seconds


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """
    Order tasks for display

    Incomplete tasks come first. Within each group tasks follow their
    manual order when the group carries one (tasks without an order go
    last), then their title.

    Args:
        tasks: Tasks in any order

    Returns:
        New sorted list
    """
    tasks = list(tasks)
    incomplete = [t for t in tasks if not t.is_completed]
    completed = [t for t in tasks if t.is_completed]
    return _sort_group(incomplete) + _sort_group(completed)


def _sort_group(group: List[Task]) -> List[Task]:
    if any(t.order is not None for t in group):
        return sorted(
            group,
            key=lambda t: (t.order is None, t.order if t.order is not None else 0, t.title),
        )
    return sorted(group, key=lambda t: t.title)


def tasks_for_day(tasks: Iterable[Task], day: DateLike) -> List[Task]:
    """
    Tasks due on the calendar day of day, in display order

    Args:
        tasks: A user's tasks
        day: Reference date or datetime (time of day is ignored)

    Returns:
        Sorted list of matching tasks
    """
    target = calendar_day(day)
    return sort_tasks(t for t in tasks if calendar_day(t.due_date) == target)


def overdue_tasks(tasks: Iterable[Task], today: DateLike) -> List[Task]:
    """
    Incomplete tasks whose due day is before today, oldest first

    Args:
        tasks: A user's tasks
        today: Current date

    Returns:
        Overdue tasks
    """
    today_day = calendar_day(today)
    overdue = [
        t for t in tasks
        if not t.is_completed and calendar_day(t.due_date) < today_day
    ]
    return sorted(overdue, key=lambda t: (t.due_date, t.title))


def is_overdue(task: Task, today: DateLike) -> bool:
    """Whether a single task is overdue"""
    return not task.is_completed and calendar_day(task.due_date) < calendar_day(today)


def due_today_count(tasks: Iterable[Task], today: DateLike) -> int:
    """Number of incomplete tasks due today"""
    today_day = calendar_day(today)
    return sum(
        1 for t in tasks
        if not t.is_completed and calendar_day(t.due_date) == today_day
    )


def progress(tasks: Iterable[Task]) -> TaskProgress:
    """Completion counts and summed time spent"""
    tasks = list(tasks)
    return TaskProgress(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.is_completed),
        total_time_spent=sum(t.time_spent for t in tasks),
    )


def task_days(tasks: Iterable[Task]) -> Dict[str, Set[date]]:
    """
    Calendar days carrying tasks, for calendar markers

    Returns:
        {"task_days": days with incomplete tasks,
         "completed_task_days": days with completed tasks}
    """
    result: Dict[str, Set[date]] = {"task_days": set(), "completed_task_days": set()}
    for t in tasks:
        key = "completed_task_days" if t.is_completed else "task_days"
        result[key].add(calendar_day(t.due_date))
    return result


def weekly_overview(tasks: Iterable[Task], day: DateLike) -> List[OverviewBucket]:
    """
    Time spent per day (Mon-Sun) of the week containing day, by due date

    Args:
        tasks: A user's tasks
        day: Any day of the week

    Returns:
        Seven buckets named by weekday abbreviation
    """
    tasks = list(tasks)
    buckets = []
    for d in days_of_week(day):
        total = sum(t.time_spent for t in tasks if calendar_day(t.due_date) == d)
        buckets.append(OverviewBucket(name=d.strftime("%a"), total=total))
    return buckets


def monthly_overview(tasks: Iterable[Task], day: DateLike) -> List[OverviewBucket]:
    """
    Time spent per week of the month containing day, by due date

    Only tasks due inside the month count, even for weeks that straddle
    a month boundary.

    Args:
        tasks: A user's tasks
        day: Any day of the month

    Returns:
        One bucket per week ("Week 1", "Week 2", ...)
    """
    tasks = list(tasks)
    month_day = calendar_day(day)
    buckets = []
    for i, week_start in enumerate(weeks_of_month(month_day)):
        week = set(days_of_week(week_start))
        total = 0
        for t in tasks:
            due = calendar_day(t.due_date)
            if due in week and (due.year, due.month) == (month_day.year, month_day.month):
                total += t.time_spent
        buckets.append(OverviewBucket(name=f"Week {i + 1}", total=total))
    return buckets
