"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    delete_notification as delete_notification_uc,
    dismiss_notification as dismiss_notification_uc,
    get_notification as get_notification_uc,
    get_unread_count as get_unread_count_uc,
    list_notifications as list_notifications_uc,
    list_unread_notifications as list_unread_notifications_uc,
    mark_all_as_read as mark_all_as_read_uc,
    mark_as_read as mark_as_read_uc,
    mark_many_as_read as mark_many_as_read_uc,
)
from app.domain.entities import (
    Notification,
    NotificationFilter,
    NotificationPage,
    NotificationType,
    Priority,
)
from app.domain.exceptions import NotificationAccessDeniedError, NotificationNotFoundError
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.notifications import notification_manager, serialize_notification
from app.interfaces.api.dependencies import get_current_user_id
from app.interfaces.api.schemas import (
    NotificationBulkUpdateResult,
    NotificationMarkReadRequest,
    NotificationPageRead,
    NotificationRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        author_id=notification.author_id,
        target_id=notification.target_id,
        notification_type=notification.notification_type,
        subject=notification.subject,
        message=notification.message,
        channels=list(notification.channels),
        priority=notification.priority,
        link=notification.link,
        metadata=notification.metadata,
        read_status=notification.read_status,
        read_at=notification.read_at,
        dismissed_status=notification.dismissed_status,
        dismissed_at=notification.dismissed_at,
        created_at=notification.created_at,
        updated_at=notification.updated_at,
    )


def _page_to_schema(page: NotificationPage) -> NotificationPageRead:
    return NotificationPageRead(
        items=[_notification_to_schema(notification) for notification in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
        pages=page.pages,
    )


def _session_factory(websocket: WebSocket) -> Callable[[], Session]:
    return getattr(websocket.app.state, "session_factory", SessionLocal)


def _raise_for_store_error(exc: Exception) -> None:
    if isinstance(exc, NotificationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, NotificationAccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    raise exc


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    active_only: bool = True,
    notification_type: NotificationType | None = Query(None, alias="type"),
    priority: Priority | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationPageRead:
    """Return a page of the requester's notifications, newest first."""

    filters = NotificationFilter(
        unread_only=unread_only,
        active_only=active_only,
        notification_type=notification_type,
        priority=priority,
    )
    result = list_notifications_uc(db, user_id, filters=filters, page=page, size=size)
    return _page_to_schema(result)


@router.get("/unread", response_model=NotificationPageRead)
def list_unread_notifications(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationPageRead:
    return _page_to_schema(list_unread_notifications_uc(db, user_id, page=page, size=size))


@router.get("/unread-count", response_model=UnreadCountRead)
def read_unread_count(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> UnreadCountRead:
    return UnreadCountRead(count=get_unread_count_uc(db, user_id))


@router.patch("/read", response_model=NotificationBulkUpdateResult)
def mark_notifications_as_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationBulkUpdateResult:
    """Mark the listed notifications as read; ids owned by others are ignored."""

    updated = mark_many_as_read_uc(db, payload.unique_ids(), user_id)
    return NotificationBulkUpdateResult(updated=updated)


@router.patch("/read-all", response_model=NotificationBulkUpdateResult)
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationBulkUpdateResult:
    return NotificationBulkUpdateResult(updated=mark_all_as_read_uc(db, user_id))


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to one user.

    Database sessions are opened per message instead of for the whole
    connection, so an idle stream holds no pooled connection.
    """

    raw_user_id = websocket.query_params.get("user_id")
    try:
        user_id = int(raw_user_id) if raw_user_id else 0
    except ValueError:
        user_id = 0
    if user_id <= 0:
        await websocket.close(code=1008)
        return

    session_factory = _session_factory(websocket)
    session = session_factory()
    try:
        pending = list_unread_notifications_uc(session, user_id, size=50).items
    finally:
        session.close()

    await notification_manager.connect(user_id, websocket)
    try:
        await websocket.send_json(
            {"type": "init", "data": [serialize_notification(n) for n in pending]}
        )
        while True:
            try:
                message: Any = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    valid_ids = [value for value in ids if isinstance(value, int)]
                    ack_session = session_factory()
                    try:
                        mark_many_as_read_uc(ack_session, valid_ids, user_id)
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user_id, websocket)
    except Exception:
        notification_manager.disconnect(user_id, websocket)
        raise


@router.get("/{notification_id}", response_model=NotificationRead)
def read_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationRead:
    try:
        notification = get_notification_uc(db, notification_id, user_id)
    except (NotificationNotFoundError, NotificationAccessDeniedError) as exc:
        _raise_for_store_error(exc)
    return _notification_to_schema(notification)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationRead:
    try:
        notification = mark_as_read_uc(db, notification_id, user_id)
    except (NotificationNotFoundError, NotificationAccessDeniedError) as exc:
        _raise_for_store_error(exc)
    return _notification_to_schema(notification)


@router.patch("/{notification_id}/dismiss", response_model=NotificationRead)
def dismiss_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> NotificationRead:
    try:
        notification = dismiss_notification_uc(db, notification_id, user_id)
    except (NotificationNotFoundError, NotificationAccessDeniedError) as exc:
        _raise_for_store_error(exc)
    return _notification_to_schema(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> Response:
    """Delete one of the requester's notifications."""

    try:
        get_notification_uc(db, notification_id, user_id)
    except (NotificationNotFoundError, NotificationAccessDeniedError) as exc:
        _raise_for_store_error(exc)
    delete_notification_uc(db, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
