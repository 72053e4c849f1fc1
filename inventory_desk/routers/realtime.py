import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from inventory_desk.deps import Principal, resolve_principal
from inventory_desk.errors import AuthError
from inventory_desk.services.notifier import Broker, Subscription, envelope

router = APIRouter(prefix="/ws", tags=["realtime"])

logger = logging.getLogger(__name__)

# application-level close codes (4000-4999)
CLOSE_UNAUTHORIZED = 4401


def websocket_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    auth_header = websocket.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


def authenticate(websocket: WebSocket) -> Principal | None:
    state = websocket.app.state
    with Session(state.engine) as session:
        try:
            return resolve_principal(websocket_token(websocket), session, state.settings)
        except AuthError as e:
            logger.warning("[WebSocket] denied %s: %s", websocket.client, e.code)
            return None


async def pump(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        await websocket.send_json(await sub.get())


async def drain(websocket: WebSocket) -> None:
    # no command channel; reading only notices the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/events")
async def events(websocket: WebSocket):
    """Push ``<resource>:<action>`` events to a dashboard client."""
    principal = await run_in_threadpool(authenticate, websocket)
    if principal is None:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Unauthorized")
        return

    await websocket.accept()
    broker: Broker = websocket.app.state.notifier

    with broker.subscribe() as sub:
        # clients re-fetch full state on this, missed events are never replayed
        await websocket.send_json(envelope("connected", {"staffId": principal.staff_id, "role": principal.role.value}))
        logger.info("[WebSocket] %s connected", principal.staff_id)

        tasks = [asyncio.create_task(pump(websocket, sub)), asyncio.create_task(drain(websocket))]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            for task in done:
                exc = task.exception()
                if exc and not isinstance(exc, WebSocketDisconnect):
                    logger.error("[WebSocket] stream error: %s", exc)
        finally:
            for task in tasks:
                task.cancel()
            logger.info("[WebSocket] %s disconnected", principal.staff_id)
