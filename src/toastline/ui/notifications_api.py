"""
Notification API endpoints.

Lets remote callers (backend services, export workers) raise notifications
and lets front-ends read the rendered surface and report interaction.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from toastline.notifications.engine import NotificationEngine
from toastline.notifications.models import Notification, NotificationKind

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


class ActionModel(BaseModel):
    """Action button descriptor."""

    id: Optional[str] = None
    label: str
    is_primary: bool = False
    icon: Optional[str] = None


class ShowRequest(BaseModel):
    """Request body for showing a notification."""

    id: Optional[str] = None
    kind: NotificationKind = NotificationKind.DEFAULT
    title: Optional[str] = None
    message: str = ""
    icon: Optional[str] = None
    duration: Optional[int] = Field(
        default=None,
        description="Auto-close delay in ms; 0 never closes, omitted uses the default",
    )
    actions: List[ActionModel] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[str] = None
    variant: Optional[str] = None
    size: Optional[str] = None
    config: Dict[str, bool] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "success",
                "title": "Audit saved",
                "message": "Audit AUD-2025-014 was updated",
                "duration": 4000,
                "actions": [{"id": "view", "label": "View", "is_primary": True}],
                "data": {"audit_id": "AUD-2025-014"},
            }
        }


def get_engine(request: Request) -> NotificationEngine:
    return request.app.state.engine


def _serialize(engine: NotificationEngine, notification: Notification) -> Dict[str, Any]:
    return notification.to_dict(engine.config)


def _require(engine: NotificationEngine, notification_id: str) -> Notification:
    notification = engine.get(notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return notification


@router.get("/notifications")
async def list_notifications(request: Request) -> List[Dict[str, Any]]:
    """Active notifications, oldest first."""
    engine = get_engine(request)
    return [_serialize(engine, n) for n in engine.all()]


@router.post("/notifications", status_code=201)
async def show_notification(request: Request, body: ShowRequest) -> Dict[str, Any]:
    """
    Show a notification.

    Invalid options (e.g. a negative duration) are replaced with defaults and
    reported in ``validation_errors`` rather than rejected.
    """
    engine = get_engine(request)
    notification = engine.show(body.model_dump(exclude_none=True))
    if notification is None:
        raise HTTPException(status_code=500, detail="Notification could not be shown")
    return _serialize(engine, notification)


@router.get("/notifications/{notification_id}")
async def get_notification(request: Request, notification_id: str) -> Dict[str, Any]:
    engine = get_engine(request)
    return _serialize(engine, _require(engine, notification_id))


@router.patch("/notifications/{notification_id}")
async def update_notification(
    request: Request,
    notification_id: str,
    updates: Dict[str, Any] = Body(...),
) -> Dict[str, Any]:
    """Update an active notification in place."""
    engine = get_engine(request)
    notification = _require(engine, notification_id)
    engine.update(notification_id, updates)
    return _serialize(engine, notification)


@router.delete("/notifications/{notification_id}", status_code=204)
async def hide_notification(request: Request, notification_id: str) -> None:
    engine = get_engine(request)
    _require(engine, notification_id)
    engine.hide(notification_id)


@router.delete("/notifications", status_code=204)
async def hide_all_notifications(request: Request) -> None:
    get_engine(request).hide_all()


@router.post("/notifications/{notification_id}/pause")
async def pause_notification(request: Request, notification_id: str) -> Dict[str, Any]:
    engine = get_engine(request)
    notification = _require(engine, notification_id)
    engine.pause(notification_id)
    return _serialize(engine, notification)


@router.post("/notifications/{notification_id}/resume")
async def resume_notification(request: Request, notification_id: str) -> Dict[str, Any]:
    engine = get_engine(request)
    notification = _require(engine, notification_id)
    engine.resume(notification_id)
    return _serialize(engine, notification)


@router.post("/notifications/{notification_id}/actions/{action_id}")
async def trigger_action(request: Request, notification_id: str, action_id: str) -> Dict[str, Any]:
    """Report activation of an action button."""
    engine = get_engine(request)
    notification = _require(engine, notification_id)
    if notification.find_action(action_id) is None:
        raise HTTPException(status_code=404, detail=f"Action {action_id} not found")
    handled = engine.trigger_action(notification_id, action_id)
    return {"notification_id": notification_id, "action_id": action_id, "handled": handled}


@router.get("/history")
async def get_history(request: Request) -> List[Dict[str, Any]]:
    """Archived notifications, oldest first."""
    return [s.to_json_dict() for s in get_engine(request).history()]


@router.get("/config")
async def get_config(request: Request) -> Dict[str, Any]:
    return get_engine(request).config.model_dump()


@router.patch("/config")
async def update_config(request: Request, patch: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """
    Change engine configuration.

    Returns the fields that changed; unknown fields or invalid values are
    rejected with 422.
    """
    engine = get_engine(request)
    try:
        engine.config.merged(**patch)
    except (KeyError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    changes = engine.update_config(**patch)
    logger.info(f"Configuration changed via API: {sorted(changes)}")
    return {"changes": changes, "config": engine.config.model_dump()}
