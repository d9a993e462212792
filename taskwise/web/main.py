"""
HTTP interface
"""

import json
from datetime import date
from typing import Dict, List, Optional
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field
from taskwise.api.auth_client import LocalAuthProvider
from taskwise.api.document_store import DocumentStore, InMemoryDocumentStore
from taskwise.api.mongo_store import MongoDocumentStore
from taskwise.api.openai_client import OpenAIClient
from taskwise.config.settings import settings
from taskwise.models.response import Notification
from taskwise.models.task import Task, TaskForm, TaskUpdate, TimeEntryInput, TimeEntryPatch
from taskwise.models.user import ChangePasswordRequest, SignInRequest, SignUpRequest, User
from taskwise.services.priority_service import PriorityService
from taskwise.services.session import Session
from taskwise.services.task_manager import TaskManager
from taskwise.services.task_projection import (
    is_overdue,
    monthly_overview,
    overdue_tasks,
    progress,
    sort_tasks,
    task_days,
    tasks_for_day,
    weekly_overview,
)
from taskwise.services.task_repository import TaskRepository
from taskwise.services.task_subscription import TaskSubscription
from taskwise.services.time_entry_service import TimeEntryService, time_log
from taskwise.utils.date_utils import get_current_date, parse_day
from taskwise.utils.error_handler import (
    AuthError,
    EmailAlreadyInUseError,
    NotFoundError,
    PermissionDeniedError,
    SuggestionError,
    TaskWiseError,
    TimerConflictError,
    ValidationError,
    WrongPasswordError,
    handle_error,
)
from taskwise.utils.formatters import (
    format_due_label,
    format_duration,
    format_hours_minutes,
    format_task_created,
    format_task_deleted,
    format_task_updated,
    format_time_summary,
)
from taskwise.utils.logger import logger

app = FastAPI(title="TaskWise API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
auth_scheme = HTTPBearer(auto_error=False)


class ToggleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_completed: Optional[bool] = Field(None, alias="isCompleted")


class RescheduleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_date: date = Field(..., alias="date")


class ReorderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_ids: List[str] = Field(..., alias="taskIds")


class TimerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId")


def build_store() -> DocumentStore:
    """Create the document store selected in settings"""
    if settings.STORE_BACKEND == "mongo":
        logger.info(f"[Store] Using MongoDB database '{settings.DATABASE_NAME}'")
        return MongoDocumentStore(settings.DATABASE_URL, settings.DATABASE_NAME)
    logger.info("[Store] Using in-memory store")
    return InMemoryDocumentStore()


class TaskWiseApp:
    """Services shared by all requests"""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        priority_service: Optional[PriorityService] = None,
    ):
        self.store = store or build_store()
        self.auth = LocalAuthProvider(self.store)
        self.repository = TaskRepository(self.store)
        self.task_manager = TaskManager(self.repository)
        self.time_entry_service = TimeEntryService(self.repository)
        self._priority_service = priority_service
        self.sessions: Dict[str, Session] = {}
        self.logger = logger

    @property
    def priority_service(self) -> PriorityService:
        if self._priority_service is None:
            self._priority_service = PriorityService(OpenAIClient())
        return self._priority_service

    def session_for(self, user_id: str) -> Session:
        """Session of a user, created on first use"""
        session = self.sessions.get(user_id)
        if session is None:
            session = Session(
                user_id,
                self.task_manager,
                self.time_entry_service,
                self.priority_service,
            )
            self.sessions[user_id] = session
        return session

    async def refreshed_session(self, user_id: str) -> Session:
        """Session with the latest task list applied"""
        session = self.session_for(user_id)
        session.apply_snapshot(await self.task_manager.list_tasks(user_id))
        return session

    def end_session(self, user_id: str):
        self.sessions.pop(user_id, None)


# Global application instance
taskwise_app = TaskWiseApp()


def get_app() -> TaskWiseApp:
    return taskwise_app


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
    services: TaskWiseApp = Depends(get_app),
) -> User:
    """Resolve the bearer token of the request"""
    if credentials is None:
        raise AuthError("Not authenticated")
    return await services.auth.verify_token(credentials.credentials)


def _status_code(error: TaskWiseError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, PermissionDeniedError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (TimerConflictError, EmailAlreadyInUseError)):
        return 409
    if isinstance(error, WrongPasswordError):
        return 400
    if isinstance(error, AuthError):
        return 401
    if isinstance(error, SuggestionError):
        return 502
    return 500


@app.exception_handler(TaskWiseError)
async def taskwise_error_handler(request: Request, exc: TaskWiseError):
    error_response = handle_error(exc)
    return JSONResponse(
        status_code=_status_code(exc),
        content={"success": False, **error_response.model_dump(exclude_none=True)},
    )


def _task_json(task: Task) -> dict:
    return task.model_dump(by_alias=True, mode="json")


def _tasks_json(tasks: List[Task]) -> List[dict]:
    return [_task_json(t) for t in tasks]


def _timer_json(session: Session) -> dict:
    timer = session.timer
    return {
        "status": timer.status.value,
        "taskId": timer.task_id,
        "startedAt": timer.started_at.isoformat() if timer.started_at else None,
        "elapsed": session.elapsed(),
    }


def _notification_json(notification: Optional[Notification]) -> Optional[dict]:
    return notification.model_dump() if notification else None


@app.on_event("startup")
async def startup():
    """Log configuration on startup"""
    logger.info(f"[Startup] TaskWise API using '{settings.STORE_BACKEND}' store")
    if not settings.OPENAI_API_KEY:
        logger.warning("[Startup] OPENAI_API_KEY is not set, priority suggestions will fail")


@app.on_event("shutdown")
async def shutdown():
    await taskwise_app.store.close()


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}


# Authentication

@app.post("/api/auth/signup")
async def sign_up(body: SignUpRequest, services: TaskWiseApp = Depends(get_app)):
    session = await services.auth.register(body.display_name, body.email, body.password)
    return {"token": session.token, "user": session.user.model_dump(by_alias=True)}


@app.post("/api/auth/login")
async def login(body: SignInRequest, services: TaskWiseApp = Depends(get_app)):
    session = await services.auth.authenticate(body.email, body.password)
    return {"token": session.token, "user": session.user.model_dump(by_alias=True)}


@app.post("/api/auth/logout")
async def logout(user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    services.end_session(user.id)
    return {"success": True}


@app.post("/api/auth/password")
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    await services.auth.change_password(
        body.current_password,
        body.new_password,
        body.confirm_password,
        user_id=user.id,
    )
    return {
        "success": True,
        "notification": Notification(title="Success", description="Your password has been changed successfully.").model_dump(),
    }


@app.get("/api/me")
async def me(user: User = Depends(get_current_user)):
    return user.model_dump(by_alias=True)


# Tasks

@app.get("/api/tasks")
async def list_tasks(
    date: Optional[str] = None,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    """All tasks, or the tasks due on one day when ?date= is given"""
    tasks = await services.task_manager.list_tasks(user.id)
    if date:
        day = parse_day(date)
        if day is None:
            raise ValidationError(f"Invalid date: {date}", field="date")
        return _tasks_json(tasks_for_day(tasks, day))
    return _tasks_json(sort_tasks(tasks))


@app.post("/api/tasks", status_code=201)
async def create_task(
    form: TaskForm,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.task_manager.create_from_form(user.id, form)
    return {"task": _task_json(task), "notification": _notification_json(format_task_created(task))}


@app.get("/api/tasks/overdue")
async def list_overdue(user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    tasks = await services.task_manager.list_tasks(user.id)
    return _tasks_json(overdue_tasks(tasks, get_current_date()))


@app.post("/api/tasks/reorder")
async def reorder_tasks(
    body: ReorderRequest,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    tasks = await services.task_manager.reorder(user.id, body.task_ids)
    return {"success": True, "updated": len(tasks)}


@app.get("/api/tasks/stream")
async def stream_tasks(user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    """Server-sent events: the full task list now and after every change"""

    async def events():
        async for tasks in TaskSubscription(services.store, user.id):
            yield f"data: {json.dumps(_tasks_json(sort_tasks(tasks)))}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")


@app.get("/api/tasks/{task_id}")
async def get_task(task_id: str, user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    """Task with its time log (newest first) and display labels"""
    task = await services.task_manager.get_task(user.id, task_id)
    return {
        **_task_json(task),
        "dueLabel": format_due_label(task.due_date),
        "isOverdue": is_overdue(task, get_current_date()),
        "timeSpentLabel": format_time_summary(task.time_spent),
        "timeLog": [
            {**e.model_dump(by_alias=True, mode="json"), "durationLabel": format_duration(e.duration)}
            for e in time_log(task)
        ],
    }


@app.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.task_manager.update_task(user.id, task_id, body)
    return {"task": _task_json(task), "notification": _notification_json(format_task_updated(task))}


@app.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str, user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    task = await services.task_manager.delete_task(user.id, task_id)
    return {"success": True, "notification": _notification_json(format_task_deleted(task))}


@app.post("/api/tasks/{task_id}/toggle")
async def toggle_task(
    task_id: str,
    body: Optional[ToggleRequest] = None,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    is_completed = body.is_completed if body else None
    task = await services.task_manager.toggle_complete(user.id, task_id, is_completed)
    return _task_json(task)


@app.post("/api/tasks/{task_id}/reschedule")
async def reschedule_task(
    task_id: str,
    body: RescheduleRequest,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.task_manager.reschedule(user.id, task_id, body.new_date)
    return _task_json(task)


# Time entries

@app.post("/api/tasks/{task_id}/entries", status_code=201)
async def add_entry(
    task_id: str,
    body: TimeEntryInput,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.time_entry_service.add_entry(user.id, task_id, body.start_time, body.end_time)
    return _task_json(task)


@app.patch("/api/tasks/{task_id}/entries/{entry_id}")
async def update_entry(
    task_id: str,
    entry_id: str,
    body: TimeEntryPatch,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.time_entry_service.update_entry(
        user.id,
        task_id,
        entry_id,
        start_time=body.start_time,
        end_time=body.end_time,
    )
    return _task_json(task)


@app.delete("/api/tasks/{task_id}/entries/{entry_id}")
async def delete_entry(
    task_id: str,
    entry_id: str,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    task = await services.time_entry_service.delete_entry(user.id, task_id, entry_id)
    return _task_json(task)


# Timer

@app.get("/api/timer")
async def timer_state(user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    return _timer_json(services.session_for(user.id))


@app.post("/api/timer/start")
async def start_timer(
    body: TimerRequest,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    session = await services.refreshed_session(user.id)
    notification = await session.start_timer(body.task_id)
    return {
        "success": notification.variant != "destructive",
        "notification": _notification_json(notification),
        "timer": _timer_json(session),
    }


@app.post("/api/timer/stop")
async def stop_timer(
    body: TimerRequest,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    session = await services.refreshed_session(user.id)
    notification = await session.stop_timer(body.task_id)
    return {
        "success": notification.variant != "destructive",
        "notification": _notification_json(notification),
        "timer": _timer_json(session),
    }


# Overview and suggestions

@app.get("/api/overview")
async def overview(
    view: str = "weekly",
    date: Optional[str] = None,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    """Time spent per day of the week or per week of the month"""
    if view not in ("weekly", "monthly"):
        raise ValidationError("View must be 'weekly' or 'monthly'", field="view")
    day = parse_day(date) if date else get_current_date()
    if day is None:
        raise ValidationError(f"Invalid date: {date}", field="date")

    tasks = await services.task_manager.list_tasks(user.id)
    buckets = weekly_overview(tasks, day) if view == "weekly" else monthly_overview(tasks, day)
    summary = progress(tasks)
    return {
        "view": view,
        "buckets": [{**b.model_dump(), "label": format_hours_minutes(b.total)} for b in buckets],
        "progress": {
            **summary.model_dump(),
            "percentage": summary.percentage,
            "timeSummary": format_time_summary(summary.total_time_spent),
        },
    }


@app.get("/api/calendar")
async def calendar(user: User = Depends(get_current_user), services: TaskWiseApp = Depends(get_app)):
    """Days carrying tasks, and the reminder about tasks due today"""
    session = await services.refreshed_session(user.id)
    days = task_days(session.tasks)
    return {
        "taskDays": sorted(d.isoformat() for d in days["task_days"]),
        "completedTaskDays": sorted(d.isoformat() for d in days["completed_task_days"]),
        "notification": _notification_json(session.due_today_notification()),
    }


@app.post("/api/suggest-priority")
async def suggest_priority(
    form: TaskForm,
    user: User = Depends(get_current_user),
    services: TaskWiseApp = Depends(get_app),
):
    outcome = await services.session_for(user.id).suggest_priority(form)
    return {
        "success": outcome.suggestion is not None,
        "form": outcome.form.model_dump(by_alias=True, mode="json"),
        "suggestion": outcome.suggestion.model_dump(mode="json") if outcome.suggestion else None,
        "notification": _notification_json(outcome.notification),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.WEB_PORT)
