"""API route handlers for the UI bridge."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from thirdeye.api.models import (
    ErrorResponse,
    NotificationsPreference,
    ShellStatusData,
    SuccessResponse,
    UpdateStatusData,
)
from thirdeye.errors import AgentApiError
from thirdeye.models.agent import AgentConfigUpdate
from thirdeye.services.orchestrator import Orchestrator

router = APIRouter(prefix="/api/v1.0")


def _orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def _error(code: int, msg: str) -> JSONResponse:
    return JSONResponse(status_code=200, content=ErrorResponse(code=code, msg=msg).model_dump())


@router.get("/status", response_model=SuccessResponse)
async def get_status(request: Request):
    """GET /api/v1.0/status - Shell and agent process status."""
    orch = _orchestrator(request)
    data = ShellStatusData(
        version=orch.version,
        agent_state=orch.supervisor.state,
        agent_pid=orch.supervisor.pid,
        agent_ready=orch.readiness.ready if orch.readiness else None,
        window_ready=orch.window.ready,
    )
    return SuccessResponse(data=data.model_dump(mode="json"))


@router.get("/splash", response_model=SuccessResponse)
async def get_splash(request: Request):
    """GET /api/v1.0/splash - Current splash-progress and splash-download.

    Response format:
        {
            "code": 200,
            "msg": "success",
            "data": {
                "progress": {"percent": 52, "text": "Downloading update... 5%", "version": "1.0.0"},
                "download": {"percent": 5.0, "transferred": 1024, "total": 20480, "speed": 512.0},
                "closed": false
            }
        }
    """
    orch = _orchestrator(request)
    return SuccessResponse(data=orch.bridge.splash.model_dump(mode="json"))


@router.get("/events", response_model=SuccessResponse)
async def get_events(request: Request, after: int = 0):
    """GET /api/v1.0/events?after=<seq> - Bridge events newer than seq."""
    orch = _orchestrator(request)
    events = [e.model_dump(mode="json") for e in orch.bridge.events_after(after)]
    return SuccessResponse(data={"events": events, "last_seq": orch.bridge.last_seq})


@router.post("/window/ready", response_model=SuccessResponse)
async def post_window_ready(request: Request):
    """POST /api/v1.0/window/ready - Main UI finished loading."""
    orch = _orchestrator(request)
    first = orch.window.mark_ready()
    return SuccessResponse(data={"first": first})


@router.post("/window/focus", response_model=SuccessResponse)
async def post_window_focus(request: Request):
    """POST /api/v1.0/window/focus - Bring the main UI to the front."""
    _orchestrator(request).window.focus()
    return SuccessResponse()


@router.get("/update", response_model=SuccessResponse)
async def get_update(request: Request):
    """GET /api/v1.0/update - Update machine phase and pending version."""
    updates = _orchestrator(request).updates
    data = UpdateStatusData(
        phase=updates.state.phase,
        pending_version=updates.pending_version,
        resolved=updates.resolved,
        has_update=updates.result.has_update if updates.result else None,
    )
    return SuccessResponse(data=data.model_dump(mode="json"))


@router.post("/update/install", response_model=SuccessResponse)
async def post_update_install(request: Request):
    """POST /api/v1.0/update/install - Install the downloaded update and relaunch.

    Silently does nothing when no update source is available.
    """
    launched = _orchestrator(request).install_update()
    return SuccessResponse(data={"launched": launched})


@router.get("/preferences/notifications", response_model=SuccessResponse)
async def get_notifications_preference(request: Request):
    """GET /api/v1.0/preferences/notifications."""
    enabled = _orchestrator(request).preferences.notifications_enabled
    return SuccessResponse(data=NotificationsPreference(enabled=enabled).model_dump())


@router.put("/preferences/notifications", response_model=SuccessResponse)
async def put_notifications_preference(request: Request, body: NotificationsPreference):
    """PUT /api/v1.0/preferences/notifications - Persist the toggle."""
    orch = _orchestrator(request)
    try:
        orch.set_notifications_enabled(body.enabled)
    except OSError as e:
        return _error(500, f"Failed to save settings: {e}")
    return SuccessResponse(data=body.model_dump())


@router.post("/notifications/{notification_id}/click", response_model=SuccessResponse)
async def post_notification_click(request: Request, notification_id: int):
    """POST /api/v1.0/notifications/{id}/click - Run the click action."""
    if not _orchestrator(request).notifier.click(notification_id):
        return _error(404, f"Notification not found: {notification_id}")
    return SuccessResponse()


@router.post("/agent/config", response_model=SuccessResponse)
async def post_agent_config(request: Request, body: AgentConfigUpdate):
    """POST /api/v1.0/agent/config - Apply collection settings to the agent.

    A rejected or unreachable agent is reported as code 502 with a message
    the settings form shows verbatim.
    """
    orch = _orchestrator(request)
    try:
        applied = await orch.client.post_config(body)
    except AgentApiError as e:
        orch.logger.warning(f"Config apply failed: {e}")
        return _error(502, f"Failed: {e}")
    return SuccessResponse(data=applied)


@router.get("/agent/connection", response_model=SuccessResponse)
async def get_agent_connection(request: Request):
    """GET /api/v1.0/agent/connection - One-shot reachability test."""
    result = await _orchestrator(request).client.test_connection()
    return SuccessResponse(data=result)
