from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from farmbot.dependencies import get_messaging_service
from farmbot.logging_config import get_logger
from farmbot.schemas.whatsapp import OutboundMessageRequest, WebhookPayload, WebhookResponse
from farmbot.services.messaging_service import MessagingService, WebhookVerificationError

logger = get_logger("webhook")

router = APIRouter()


@router.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    service: MessagingService = Depends(get_messaging_service),
):
    try:
        return service.verify_webhook_token(mode, token, challenge)
    except WebhookVerificationError as e:
        logger.warning(f"Webhook verification failed: {e}")
        return PlainTextResponse("verification failed", status_code=status.HTTP_403_FORBIDDEN)


# Sync handler: FastAPI runs it in the threadpool, so a slow model call
# only blocks its own worker thread.
@router.post("/webhook", response_model=WebhookResponse)
def receive_webhook(
    payload: WebhookPayload,
    service: MessagingService = Depends(get_messaging_service),
):
    result = service.handle_webhook(payload)
    if result.failed:
        logger.warning(
            "Webhook processed with failures",
            extra={"context": {"processed": result.processed, "failed": result.failed}},
        )
    return result


@router.post("/send-message", status_code=status.HTTP_202_ACCEPTED)
def send_message(
    request: OutboundMessageRequest,
    service: MessagingService = Depends(get_messaging_service),
):
    result = service.send_outbound(request)
    if not result.ok:
        logger.error(
            "Outbound send failed",
            extra={"context": {"to": request.to, "error": result.describe()}},
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="unable to send message")
    return {"success": True, "message_id": result.value}
