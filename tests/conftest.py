"""
Pytest configuration and fixtures
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from taskwise.api.document_store import InMemoryDocumentStore
from taskwise.api.openai_client import OpenAIClient
from taskwise.models.task import Task
from taskwise.services.priority_service import PriorityService
from taskwise.services.task_manager import TaskManager
from taskwise.services.task_repository import TaskRepository
from taskwise.services.time_entry_service import TimeEntryService

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def utc(year, month, day, hour=0, minute=0, second=0):
    """Aware UTC datetime"""
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


def make_task(**overrides) -> Task:
    """Task with sensible defaults"""
    data = {
        "user_id": USER_ID,
        "title": "Test Task",
        "due_date": utc(2024, 5, 1, 9),
    }
    data.update(overrides)
    return Task(**data)


@pytest.fixture
def store():
    """Empty in-memory document store"""
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store):
    return TaskRepository(store)


@pytest.fixture
def task_manager(repository):
    return TaskManager(repository)


@pytest.fixture
def time_entry_service(repository):
    return TimeEntryService(repository)


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client"""
    client = MagicMock(spec=OpenAIClient)
    client.complete_json = AsyncMock(return_value={
        "priority": "high",
        "reason": "The deadline is tomorrow.",
    })
    return client


@pytest.fixture
def priority_service(mock_openai_client):
    return PriorityService(openai_client=mock_openai_client)
