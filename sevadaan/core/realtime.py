# sevadaan/core/realtime.py
"""
Real-time event push over WebSockets.

Connections join rooms named "user:<id>", "role:<ROLE>" and "ngo:<id>".
Every emit is fire-and-forget: a failed send is logged and the dead
socket dropped, nothing is retried, and callers never see the error.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from loguru import logger

from sevadaan.models.common import utcnow


class EventType(str, Enum):
    CONNECTED = "connected"
    NOTIFICATION = "notification"
    DASHBOARD_REFRESH = "dashboard_refresh"

    KYC_SUBMITTED = "kyc_submitted"
    KYC_DECISION = "kyc_decision"

    EMERGENCY_CREATED = "emergency_created"
    EMERGENCY_ASSIGNED = "emergency_assigned"
    EMERGENCY_RESOLVED = "emergency_resolved"
    EMERGENCY_VERIFIED = "emergency_verified"
    EMERGENCY_REJECTED = "emergency_rejected"

    ANNOUNCEMENT_SUBMITTED = "announcement_submitted"
    ANNOUNCEMENT_DECISION = "announcement_decision"

    MANAGER_ADDED = "manager_added"
    MANAGER_UPDATED = "manager_updated"
    MANAGER_REMOVED = "manager_removed"

    PROGRAM_UPDATED = "program_updated"
    REGISTRATION_UPDATED = "registration_updated"
    DONATION_RECEIVED = "donation_received"
    VOLUNTEER_UPDATED = "volunteer_updated"
    GRANT_UPDATED = "grant_updated"

    PING = "ping"
    PONG = "pong"


def user_room(user_id) -> str:
    return f"user:{user_id}"


def role_room(role) -> str:
    return f"role:{getattr(role, 'value', role)}"


def ngo_room(ngo_id) -> str:
    return f"ngo:{ngo_id}"


@dataclass(eq=False)
class ClientConnection:
    websocket: WebSocket
    user_id: str
    rooms: Set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=utcnow)


class ConnectionManager:

    def __init__(self):
        # room -> connections
        self._rooms: Dict[str, Set[ClientConnection]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id, role, ngo_id=None) -> ClientConnection:
        await websocket.accept()

        rooms = {user_room(user_id), role_room(role)}
        if ngo_id:
            rooms.add(ngo_room(ngo_id))

        connection = ClientConnection(websocket=websocket, user_id=str(user_id), rooms=rooms)
        async with self._lock:
            for room in rooms:
                self._rooms.setdefault(room, set()).add(connection)

        logger.info(f"WebSocket connected: user {user_id} rooms={sorted(rooms)}")
        await self._send(connection, EventType.CONNECTED, {"rooms": sorted(rooms)})
        return connection

    async def disconnect(self, connection: ClientConnection) -> None:
        async with self._lock:
            for room in connection.rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(connection)
                if not members:
                    del self._rooms[room]
        logger.info(f"WebSocket disconnected: user {connection.user_id}")

    def connection_count(self, room: Optional[str] = None) -> int:
        if room is not None:
            return len(self._rooms.get(room, ()))
        return len({conn for members in self._rooms.values() for conn in members})

    # ------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------
    async def _send(self, connection: ClientConnection, event: EventType, data: Any) -> bool:
        try:
            await connection.websocket.send_json({
                "event": getattr(event, "value", event),
                "data": jsonable_encoder(data),
                "timestamp": utcnow().isoformat(),
            })
            return True
        except Exception as e:
            logger.warning(f"Dropping WebSocket for user {connection.user_id}: {e}")
            return False

    async def emit(self, room: str, event: EventType, data: Any = None) -> int:
        """
        Sends to every connection in the room. Returns how many sends
        succeeded; never raises.
        """
        try:
            async with self._lock:
                targets = list(self._rooms.get(room, ()))

            delivered = 0
            for connection in targets:
                if await self._send(connection, event, data):
                    delivered += 1
                else:
                    await self.disconnect(connection)
            return delivered
        except Exception:
            logger.exception(f"Real-time emit to {room} failed")
            return 0

    async def reply(self, connection: ClientConnection, event: EventType, data: Any = None) -> bool:
        return await self._send(connection, event, data)

    async def emit_to_user(self, user_id, event: EventType, data: Any = None) -> int:
        return await self.emit(user_room(user_id), event, data)

    async def emit_to_role(self, role, event: EventType, data: Any = None) -> int:
        return await self.emit(role_room(role), event, data)

    async def emit_to_ngo(self, ngo_id, event: EventType, data: Any = None) -> int:
        return await self.emit(ngo_room(ngo_id), event, data)

    async def emit_dashboard_refresh(self, room: str, section: str) -> int:
        return await self.emit(room, EventType.DASHBOARD_REFRESH, {"section": section})


connection_manager = ConnectionManager()
