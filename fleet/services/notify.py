"""Fan-out of request lifecycle events to WebSocket subscribers."""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = logging.getLogger(__name__)

UPDATES_GROUP = "updates"


def request_event(req, event: str) -> dict:
    return {
        "type": "request.event",
        "event": event,
        "requestId": str(req.pk),
        "status": req.status,
        "priority": req.priority,
        "assignedTo": req.assigned_to_id,
        "equipmentId": str(req.equipment_id) if req.equipment_id else None,
        "ts": timezone.now().isoformat(),
    }


def publish(payload: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, payload)
    except Exception:
        # Best effort; the write has already committed
        logger.warning("failed to publish %s for request %s", payload.get("event"), payload.get("requestId"), exc_info=True)
