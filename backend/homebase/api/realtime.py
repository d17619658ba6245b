import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.api.deps import resolve_token
from homebase.core.db import get_session
from homebase.core.errors import Unauthenticated
from homebase.services.realtime import HouseholdBroadcaster, get_broadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def household_updates(
    websocket: WebSocket,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> None:
    """Push refresh signals for the caller's household until the client leaves.

    Browsers cannot set headers on a WebSocket handshake, so the bearer token
    travels as the ``token`` query parameter.
    """
    try:
        ctx = await resolve_token(session, token)
    except Unauthenticated:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        await session.close()

    if ctx.household_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    household_id = ctx.household_id
    await websocket.accept()
    await broadcaster.join(household_id, websocket)
    logger.debug("User %s subscribed to household %s", ctx.user_id, household_id)
    try:
        while True:
            # Clients only listen; inbound frames are read to detect disconnects.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("User %s unsubscribed from household %s", ctx.user_id, household_id)
    finally:
        await broadcaster.leave(household_id, websocket)
