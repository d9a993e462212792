"""
Tests for the session controller
"""

import pytest
from datetime import date
from taskwise.models.task import Priority, TaskForm
from taskwise.services.session import Session
from taskwise.utils.error_handler import SuggestionError
from conftest import USER_ID, make_task, utc


@pytest.fixture
def session(task_manager, time_entry_service, priority_service):
    return Session(USER_ID, task_manager, time_entry_service, priority_service)


def test_visible_tasks_follow_selected_date(session):
    first = make_task(title="First", due_date=utc(2024, 5, 1, 8))
    second = make_task(title="Second", due_date=utc(2024, 5, 2, 8))
    session.apply_snapshot([first, second])

    session.select_date(utc(2024, 5, 2, 20))

    assert session.selected_date == date(2024, 5, 2)
    assert session.visible_tasks() == [second]


def test_due_today_notification(session):
    session.apply_snapshot([
        make_task(due_date=utc(2024, 5, 1, 8)),
        make_task(due_date=utc(2024, 5, 1, 9)),
    ])
    notification = session.due_today_notification(date(2024, 5, 1))
    assert notification.title == "Upcoming Deadlines"
    assert notification.description == "You have 2 tasks due today."
    assert session.due_today_notification(date(2024, 5, 3)) is None


def test_overdue(session):
    late = make_task(due_date=utc(2024, 4, 1))
    session.apply_snapshot([late, make_task(due_date=utc(2024, 5, 1))])
    assert session.overdue(date(2024, 5, 1)) == [late]


@pytest.mark.asyncio
async def test_timer_start_and_stop_logs_entry(session, repository):
    task = await repository.insert(make_task(title="Pay rent"))
    session.apply_snapshot([task])

    started = await session.start_timer(task.id, now=utc(2024, 5, 1, 9))
    assert started.title == "Timer Started"
    assert session.timer.is_running_for(task.id)
    assert session.elapsed(now=utc(2024, 5, 1, 9, 0, 30)) == 30

    stopped = await session.stop_timer(task.id, now=utc(2024, 5, 1, 9, 10))
    assert stopped.title == "Timer Stopped"
    assert stopped.description == 'Time logged for "Pay rent".'
    assert not session.timer.is_running

    stored = await repository.get(USER_ID, task.id)
    assert len(stored.time_entries) == 1
    assert stored.time_spent == 600
    assert session.tasks[0].time_spent == 600


@pytest.mark.asyncio
async def test_stop_timer_after_clock_steps_back(session, repository):
    task = await repository.insert(make_task(title="Pay rent"))
    session.apply_snapshot([task])
    await session.start_timer(task.id, now=utc(2024, 5, 1, 9, 0, 5))

    stopped = await session.stop_timer(task.id, now=utc(2024, 5, 1, 9))

    assert stopped.title == "Timer Stopped"
    assert not session.timer.is_running
    stored = await repository.get(USER_ID, task.id)
    assert [e.duration for e in stored.time_entries] == [0]
    assert stored.time_spent == 0


@pytest.mark.asyncio
async def test_second_timer_is_refused(session, repository):
    first = await repository.insert(make_task(title="First"))
    second = await repository.insert(make_task(title="Second"))
    session.apply_snapshot([first, second])

    await session.start_timer(first.id, now=utc(2024, 5, 1, 9))
    refused = await session.start_timer(second.id, now=utc(2024, 5, 1, 9, 5))

    assert refused.title == "Another Timer Active"
    assert refused.variant == "destructive"
    assert session.timer.is_running_for(first.id)


@pytest.mark.asyncio
async def test_start_timer_for_missing_task(session):
    notification = await session.start_timer("missing", now=utc(2024, 5, 1, 9))
    assert notification.variant == "destructive"
    assert not session.timer.is_running


@pytest.mark.asyncio
async def test_stop_without_running_timer(session, repository):
    task = await repository.insert(make_task())
    notification = await session.stop_timer(task.id, now=utc(2024, 5, 1, 9))
    assert notification.variant == "destructive"
    stored = await repository.get(USER_ID, task.id)
    assert stored.time_entries == []


def test_snapshot_without_timed_task_resets_timer(session):
    task = make_task()
    session.apply_snapshot([task])
    session.timer = session.timer.running(task.id, utc(2024, 5, 1, 9))

    session.apply_snapshot([])

    assert not session.timer.is_running


def test_open_time_log_is_relocated_by_id(session):
    task = make_task(title="Before")
    session.apply_snapshot([task])
    session.open_time_log(task.id)

    renamed = task.model_copy(update={"title": "After"})
    open_task = session.apply_snapshot([renamed])

    assert open_task.title == "After"
    assert session.open_time_log_task().title == "After"


def test_open_time_log_closes_when_task_disappears(session):
    task = make_task()
    session.apply_snapshot([task])
    session.open_time_log(task.id)

    assert session.apply_snapshot([]) is None
    assert session.open_task_id is None


@pytest.mark.asyncio
async def test_suggest_priority_updates_form(session):
    form = TaskForm(title="Pay rent", due_date=utc(2024, 5, 1), priority="low")

    outcome = await session.suggest_priority(form)

    assert outcome.form.priority == Priority.HIGH
    assert outcome.suggestion.reason == "The deadline is tomorrow."
    assert outcome.notification is None


@pytest.mark.asyncio
async def test_suggest_priority_failure_keeps_priority(session, mock_openai_client):
    mock_openai_client.complete_json.side_effect = SuggestionError()
    form = TaskForm(title="Pay rent", due_date=utc(2024, 5, 1), priority="low")

    outcome = await session.suggest_priority(form)

    assert outcome.form.priority == Priority.LOW
    assert outcome.suggestion is None
    assert outcome.notification.title == "AI Suggestion Failed"
    assert outcome.notification.description == "Failed to get suggestion from AI. Please try again."


@pytest.mark.asyncio
async def test_suggest_priority_needs_text(session, mock_openai_client):
    form = TaskForm(title="", due_date=utc(2024, 5, 1))

    outcome = await session.suggest_priority(form)

    assert outcome.notification.description == "Please enter a title or description first."
    mock_openai_client.complete_json.assert_not_called()
