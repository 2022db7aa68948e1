from fastapi import APIRouter, Depends
from pydantic import BaseModel

from aitana.api.deps import get_relay, require_api_key
from aitana.channels.protocol import MessageRelay
from aitana.core.errors import ValidationError
from aitana.core.logging import get_logger

_log = get_logger("api.notify")

router = APIRouter(tags=["Notify"])


class NotificationRequest(BaseModel):
    text: str = ""


@router.post("/send-notification", dependencies=[Depends(require_api_key)])
async def send_notification(body: NotificationRequest, relay: MessageRelay = Depends(get_relay)):
    """Relay ``text`` verbatim to the staff channel."""
    if not body.text.strip():
        raise ValidationError("No text provided", field="text")
    await relay.send(body.text)
    _log.info("Notification relayed", chars=len(body.text))
    return {"status": "sent"}
