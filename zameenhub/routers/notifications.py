"""
Websocket channel that pushes approval decisions to the affected owner.

Connect to ``/notifications/approvals?token=<jwt>`` with an access token, or
with the approval-watch token a dealer receives at signup.
"""

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
import asyncio
import logging

from zameenhub.services.auth import AuthService
from zameenhub.services.notifications import ApprovalNotifier, Subscription
from zameenhub.utils.dependencies import get_notifier, get_app_settings
from zameenhub.utils.exceptions import APIException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def _forward_events(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_json(event.to_dict())


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/approvals")
async def approval_notifications(
    websocket: WebSocket,
    token: str = Query(..., description="Access token or approval-watch token"),
    notifier: ApprovalNotifier = Depends(get_notifier)
):
    database = websocket.app.state.database
    settings = get_app_settings(websocket)

    # The session is only held while the token is resolved
    try:
        async with database.session_factory() as session:
            profile = await AuthService(session, settings).get_notification_subscriber(token)
            owner_id = profile.id
            current_status = profile.approval_status.value if profile.approval_status else None
    except APIException as e:
        logger.warning(f"Rejected approval subscription: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e.detail))
        return

    await websocket.accept()

    async with notifier.subscribe(owner_id) as subscription:
        await websocket.send_json({
            "type": "subscribed",
            "owner_id": str(owner_id),
            "approval_status": current_status,
        })

        tasks = [
            asyncio.create_task(_forward_events(websocket, subscription)),
            asyncio.create_task(_wait_for_disconnect(websocket)),
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Approval notification stream for {owner_id} failed: {error}")

    logger.debug(f"Approval notification stream closed for {owner_id}")
