import uuid

import pytest

from sevadaan.core.permissions import Role
from sevadaan.core.realtime import ConnectionManager, EventType, ngo_room, role_room, user_room
from sevadaan.models.enums import NotificationType
from sevadaan.models.notification import Notification
from sevadaan.services.notification_service import push_notification


class FakeWebSocket:
    def __init__(self, broken=False):
        self.accepted = False
        self.broken = broken
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("connection reset by peer")
        self.sent.append(data)


@pytest.mark.asyncio
async def test_connect_joins_user_role_and_ngo_rooms():
    manager = ConnectionManager()
    user_id, ngo_id = uuid.uuid4(), uuid.uuid4()
    socket = FakeWebSocket()

    connection = await manager.connect(socket, user_id, Role.NGO_ADMIN, ngo_id)

    assert socket.accepted
    assert connection.rooms == {user_room(user_id), role_room(Role.NGO_ADMIN), ngo_room(ngo_id)}
    assert socket.sent[0]["event"] == "connected"
    assert manager.connection_count() == 1
    assert manager.connection_count(ngo_room(ngo_id)) == 1


@pytest.mark.asyncio
async def test_emit_reaches_only_the_target_room():
    manager = ConnectionManager()
    ngo_id = uuid.uuid4()
    staff, outsider = FakeWebSocket(), FakeWebSocket()
    await manager.connect(staff, uuid.uuid4(), Role.NGO_MANAGER, ngo_id)
    await manager.connect(outsider, uuid.uuid4(), Role.DONOR)

    delivered = await manager.emit_to_ngo(ngo_id, EventType.KYC_DECISION, {"status": "verified", "ngo_id": ngo_id})

    assert delivered == 1
    assert staff.sent[-1]["event"] == "kyc_decision"
    assert staff.sent[-1]["data"] == {"status": "verified", "ngo_id": str(ngo_id)}
    assert "timestamp" in staff.sent[-1]
    assert [message["event"] for message in outsider.sent] == ["connected"]


@pytest.mark.asyncio
async def test_dead_socket_is_dropped_and_emit_never_raises():
    manager = ConnectionManager()
    healthy, broken = FakeWebSocket(), FakeWebSocket(broken=True)
    await manager.connect(healthy, uuid.uuid4(), Role.SUPER_ADMIN)
    await manager.connect(broken, uuid.uuid4(), Role.SUPER_ADMIN)
    assert manager.connection_count(role_room(Role.SUPER_ADMIN)) == 2

    delivered = await manager.emit_to_role(Role.SUPER_ADMIN, EventType.EMERGENCY_CREATED, {"city": "Pune"})

    assert delivered == 1
    assert manager.connection_count(role_room(Role.SUPER_ADMIN)) == 1


@pytest.mark.asyncio
async def test_emit_to_empty_room():
    manager = ConnectionManager()
    assert await manager.emit_to_user(uuid.uuid4(), EventType.NOTIFICATION, {}) == 0


@pytest.mark.asyncio
async def test_disconnect_cleans_up_rooms():
    manager = ConnectionManager()
    user_id = uuid.uuid4()
    connection = await manager.connect(FakeWebSocket(), user_id, Role.VOLUNTEER)

    await manager.disconnect(connection)

    assert manager.connection_count() == 0
    assert manager.connection_count(user_room(user_id)) == 0


@pytest.mark.asyncio
async def test_push_notification_targets_the_user(monkeypatch):
    manager = ConnectionManager()
    monkeypatch.setattr("sevadaan.services.notification_service.connection_manager", manager)
    user_id = uuid.uuid4()
    socket = FakeWebSocket()
    await manager.connect(socket, user_id, Role.DONOR)

    notification = Notification(
        id=uuid.uuid4(),
        user_id=user_id,
        title="Thank you",
        message="Your donation was received",
        type=NotificationType.Donation,
    )
    await push_notification(notification)

    assert socket.sent[-1]["event"] == "notification"
    assert socket.sent[-1]["data"]["title"] == "Thank you"
    assert socket.sent[-1]["data"]["type"] == "donation"
