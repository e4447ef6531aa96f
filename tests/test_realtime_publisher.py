"""Tests for websocket bookkeeping and realtime notification pushes."""

from __future__ import annotations

import asyncio

from app.domain.entities import Notification, NotificationType
from app.infrastructure.notifications import NotificationConnectionManager, NotificationPublisher


class FakeWebSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.accepted = False
        self.fail = fail
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def _notification(target_id: int = 2) -> Notification:
    return Notification(
        id=7,
        author_id=1,
        target_id=target_id,
        notification_type=NotificationType.TASK_ASSIGNED,
        subject="Task assigned to you",
        message='You\'ve been assigned to task: "Report"',
    )


def test_dispatch_skips_users_without_open_streams():
    publisher = NotificationPublisher(NotificationConnectionManager())
    loop = asyncio.new_event_loop()
    publisher.bind_loop(loop)
    try:
        assert publisher.dispatch(_notification()) is False
    finally:
        loop.close()


def test_dispatch_from_worker_thread_reaches_open_stream():
    manager = NotificationConnectionManager()
    publisher = NotificationPublisher(manager)
    websocket = FakeWebSocket()

    async def scenario() -> bool:
        await manager.connect(2, websocket)
        publisher.bind_loop(asyncio.get_running_loop())
        scheduled = await asyncio.to_thread(publisher.dispatch, _notification())
        for _ in range(100):
            if websocket.sent:
                break
            await asyncio.sleep(0.01)
        return scheduled

    assert asyncio.run(scenario()) is True
    assert websocket.accepted is True
    [message] = websocket.sent
    assert message["type"] == "notification"
    assert message["data"]["id"] == 7
    assert message["data"]["notification_type"] == "TASK_ASSIGNED"


def test_failed_streams_are_dropped():
    manager = NotificationConnectionManager()
    healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)

    async def scenario() -> int:
        await manager.connect(2, healthy)
        await manager.connect(2, broken)
        return await manager.send_to_user(2, {"type": "ping"})

    assert asyncio.run(scenario()) == 1
    assert manager.connection_count(2) == 1
    assert healthy.sent == [{"type": "ping"}]


def test_disconnecting_last_stream_marks_user_offline():
    manager = NotificationConnectionManager()
    websocket = FakeWebSocket()

    asyncio.run(manager.connect(3, websocket))
    assert manager.is_connected(3) is True

    manager.disconnect(3, websocket)
    manager.disconnect(3, websocket)

    assert manager.is_connected(3) is False
    assert manager.connection_count(3) == 0
