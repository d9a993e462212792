"""
Timer state and transitions

At most one timer runs at a time. The state is a plain value: whoever owns
it (the session) replaces it with the result of each transition.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict
from taskwise.models.task import TimeEntry
from taskwise.utils.date_utils import seconds_between, to_aware
from taskwise.utils.error_handler import TimerConflictError


class TimerStatus(str, Enum):
    """Timer status"""
    IDLE = "idle"
    RUNNING = "running"


class TimerState(BaseModel):
    """Either idle, or running for one task since a start moment"""

    model_config = ConfigDict(frozen=True)

    status: TimerStatus = TimerStatus.IDLE
    task_id: Optional[str] = None
    started_at: Optional[datetime] = None

    @classmethod
    def idle(cls) -> "TimerState":
        return cls()

    @classmethod
    def running(cls, task_id: str, started_at: datetime) -> "TimerState":
        return cls(status=TimerStatus.RUNNING, task_id=task_id, started_at=to_aware(started_at))

    @property
    def is_running(self) -> bool:
        return self.status == TimerStatus.RUNNING

    def is_running_for(self, task_id: str) -> bool:
        """Whether this task's timer is the running one"""
        return self.is_running and self.task_id == task_id

    def blocks(self, task_id: str) -> bool:
        """Whether another task's timer prevents starting this one"""
        return self.is_running and self.task_id != task_id


def start_timer(state: TimerState, task_id: str, now: datetime) -> TimerState:
    """
    Start timing a task

    Args:
        state: Current timer state
        task_id: Task to time
        now: Start moment

    Returns:
        Running state (unchanged if this task is already running)

    Raises:
        TimerConflictError: If another task's timer is running
    """
    if state.is_running_for(task_id):
        return state
    if state.blocks(task_id):
        raise TimerConflictError(running_task_id=state.task_id)
    return TimerState.running(task_id, now)


def stop_timer(state: TimerState, task_id: str, now: datetime) -> Tuple[TimerState, TimeEntry]:
    """
    Stop the running timer and turn the interval into a time entry

    Args:
        state: Current timer state
        task_id: Task whose timer is stopped
        now: Stop moment

    Returns:
        (idle state, new time entry with floored whole-second duration;
        a stop moment before the start yields a 0-second entry)

    Raises:
        TimerConflictError: If this task's timer is not the running one
    """
    if not state.is_running_for(task_id):
        raise TimerConflictError(
            "This task's timer is not running.",
            running_task_id=state.task_id,
        )
    end = max(to_aware(now), state.started_at)
    entry = TimeEntry.from_interval(state.started_at, end)
    return TimerState.idle(), entry


def elapsed_seconds(state: TimerState, now: datetime) -> int:
    """Seconds on the running timer (0 when idle); for display only"""
    if not state.is_running:
        return 0
    return max(seconds_between(state.started_at, now), 0)
