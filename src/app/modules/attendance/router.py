"""
Attendance Router

API endpoints for the live attendance check-in display.

Endpoints:
- GET /attendance/current-token - Discover or mint the live token (polling displays)
- WS  /attendance/display?token=... - Push display snapshots for one mounted display

The WebSocket owns exactly one AttendanceDisplay: it is mounted when the
socket is accepted and unmounted when the socket closes, which cancels the
display's timers.
"""

import asyncio
import logging
from functools import partial

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from app.core.auth import AdminUser, authenticate_admin_token, get_current_admin_user
from app.core.scheduler import get_scheduler
from app.modules.attendance.display import AttendanceDisplay, DisplaySnapshot
from app.modules.attendance.encoder import format_countdown
from app.modules.attendance.manager import AttendanceTokenManager, TokenMintError
from app.modules.attendance.schemas import CurrentTokenResponse, DisplaySnapshotResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Snapshots buffered per socket; a lagging client loses the oldest ones
SNAPSHOT_BUFFER_SIZE = 16

_manager: AttendanceTokenManager | None = None


def get_token_manager() -> AttendanceTokenManager:
    """Process-wide token manager (stateless, safe to share)."""
    global _manager
    if _manager is None:
        _manager = AttendanceTokenManager()
    return _manager


@router.get(
    "/current-token",
    response_model=CurrentTokenResponse,
    summary="Get Current Check-in Token",
    description="""
Return the live check-in token, minting a new one when none is live.

Intended for displays that poll instead of holding a WebSocket open.

**Access:** Admin only
""",
    responses={
        503: {"description": "Store unavailable - token could not be created"},
    },
)
async def get_current_token(
    manager: AttendanceTokenManager = Depends(get_token_manager),
    admin: AdminUser = Depends(get_current_admin_user),
) -> CurrentTokenResponse:
    try:
        token = await manager.acquire()
    except TokenMintError as e:
        logger.error(f"Admin {admin.id} could not get a check-in token: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e

    seconds_left = token.seconds_left(manager.clock())
    return CurrentTokenResponse(
        token=token.token,
        checkin_url=manager.checkin_url(token),
        created_at=token.created_at,
        expires_at=token.expires_at,
        seconds_left=seconds_left,
        countdown=format_countdown(seconds_left),
    )


def _publish_latest(queue: asyncio.Queue[DisplaySnapshot], snapshot: DisplaySnapshot) -> None:
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(snapshot)


async def _send_snapshots(websocket: WebSocket, queue: asyncio.Queue[DisplaySnapshot]) -> None:
    while True:
        snapshot = await queue.get()
        payload = DisplaySnapshotResponse.model_validate(snapshot)
        await websocket.send_text(payload.model_dump_json())


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Clients never send anything meaningful; receiving only detects the close
    while True:
        await websocket.receive_text()


@router.websocket("/display")
async def display_socket(
    websocket: WebSocket,
    token: str = Query(..., description="Admin access token"),
    manager: AttendanceTokenManager = Depends(get_token_manager),
) -> None:
    """Mount a display for the lifetime of the socket and stream its snapshots."""
    try:
        admin = await authenticate_admin_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    scheduler = get_scheduler()
    if scheduler is None:
        logger.error("Attendance display requested but the scheduler is not running")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await websocket.accept()

    queue: asyncio.Queue[DisplaySnapshot] = asyncio.Queue(maxsize=SNAPSHOT_BUFFER_SIZE)
    display = AttendanceDisplay(manager, scheduler, on_change=partial(_publish_latest, queue))
    logger.info(f"Admin {admin.id} opened attendance display {display.display_id}")

    sender = asyncio.create_task(_send_snapshots(websocket, queue))
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        await display.mount()
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error(
                    f"Attendance display {display.display_id} socket failed: {error}",
                    exc_info=error,
                )
    finally:
        display.unmount()
        sender.cancel()
        receiver.cancel()
        logger.info(f"Attendance display {display.display_id} closed")
