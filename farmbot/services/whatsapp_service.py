from typing import Optional

import httpx

from farmbot.logging_config import get_logger
from farmbot.services.result import INVALID_REQUEST, NOT_CONFIGURED, SEND_ERROR, Result

logger = get_logger("whatsapp_service")


class WhatsAppService:
    """Service for sending messages through the WhatsApp Cloud API."""

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        base_url: str = "https://graph.facebook.com",
        api_version: str = "v20.0",
        timeout_seconds: float = 10.0,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.base_url = f"{base_url.rstrip('/')}/{api_version}"
        self.timeout_seconds = timeout_seconds

    def _make_request(self, path: str, data: dict) -> dict:
        """Make request to the Graph API. Never raises."""
        url = f"{self.base_url}/{path}"
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {self.access_token}",
                        "Content-Type": "application/json",
                    },
                    json=data,
                )
        except Exception as e:
            logger.error(f"WhatsApp API error: {e}")
            return {"ok": False, "error": str(e)}

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.status_code >= 400:
            error = body.get("error") if isinstance(body, dict) else None
            code = response.status_code
            message = response.text
            if isinstance(error, dict):
                code = error.get("code") or code
                message = error.get("message") or message
            return {"ok": False, "error": f"whatsapp api error: code={code}, message={message}"}

        return {"ok": True, "result": body}

    def send_text(self, to: str, body: str, preview_url: bool = False) -> Result[Optional[str]]:
        """Send a text message. Returns the WhatsApp message id on success."""
        if not self.access_token or not self.phone_number_id:
            return Result.failure("WhatsApp credentials are not configured", NOT_CONFIGURED)
        if not to or not body:
            return Result.failure("Missing recipient or body", INVALID_REQUEST)

        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body, "preview_url": preview_url},
        }
        response = self._make_request(f"{self.phone_number_id}/messages", payload)
        if not response.get("ok"):
            logger.error(
                "WhatsApp send failed",
                extra={"context": {"to": to, "error": response.get("error")}},
            )
            return Result.failure(response.get("error") or "unknown error", SEND_ERROR)

        messages = response["result"].get("messages") or []
        message_id = messages[0].get("id") if messages else None
        return Result.success(message_id)
