"""Alert service for sending operator notifications over WhatsApp."""

from typing import Optional

import httpx

from farmbot.config import settings
from farmbot.logging_config import get_logger

logger = get_logger("alert_service")

ALERT_WHATSAPP_TO = settings.alert_whatsapp_to
WHATSAPP_TOKEN = settings.whatsapp_token
WHATSAPP_PHONE_NUMBER_ID = settings.whatsapp_phone_number_id
WHATSAPP_API_URL = f"{settings.whatsapp_base_url.rstrip('/')}/{settings.whatsapp_api_version}"


def send_alert(level: str, message: str, context: Optional[dict] = None) -> bool:
    """Send alert to the operator's WhatsApp number.

    Args:
        level: INFO, WARNING, ERROR, CRITICAL
        message: Alert message
        context: Optional context dict

    Returns:
        True if sent successfully
    """
    if not ALERT_WHATSAPP_TO or not WHATSAPP_TOKEN or not WHATSAPP_PHONE_NUMBER_ID:
        logger.warning(f"Alert not configured: {level} - {message}")
        return False

    emoji = {"INFO": "ℹ️", "WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🔥"}

    text = f"{emoji.get(level, '📢')} *{level}*\n\n{message}"

    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        text += f"\n\n```\n{context_str}\n```"

    try:
        with httpx.Client(timeout=10) as client:
            response = client.post(
                f"{WHATSAPP_API_URL}/{WHATSAPP_PHONE_NUMBER_ID}/messages",
                headers={"Authorization": f"Bearer {WHATSAPP_TOKEN}"},
                json={
                    "messaging_product": "whatsapp",
                    "to": ALERT_WHATSAPP_TO,
                    "type": "text",
                    "text": {"body": text},
                },
            )
            return response.status_code == 200
    except Exception as e:
        logger.error(f"Failed to send alert: {e}")
        return False


def alert_error(message: str, context: Optional[dict] = None) -> bool:
    """Shortcut for ERROR level alert."""
    return send_alert("ERROR", message, context)


def alert_critical(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("CRITICAL", message, context)


def alert_warning(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("WARNING", message, context)
