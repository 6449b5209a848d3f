# sevadaan/api/endpoints/realtime.py

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session, resolve_user
from sevadaan.core.realtime import EventType, connection_manager

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: str = Query(""),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Connect: WS /ws?token=<access token>

    The socket joins the user's own room, its role room and, for NGO
    staff, the NGO room. Clients may send {"type": "ping"}.
    """
    settings = websocket.app.state.settings
    try:
        user = await resolve_user(session, settings, token)
    except HTTPException as e:
        await websocket.close(code=4001, reason=e.detail)
        return

    connection = await connection_manager.connect(websocket, user.id, user.role, user.ngo_id)
    try:
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("type") == EventType.PING.value:
                await connection_manager.reply(connection, EventType.PONG, {})
            else:
                logger.debug(f"Ignoring WebSocket message from user {user.id}")
    except WebSocketDisconnect:
        pass
    except ValueError:
        logger.warning(f"Malformed WebSocket frame from user {user.id}; closing")
        await websocket.close(code=1003)
    finally:
        await connection_manager.disconnect(connection)
