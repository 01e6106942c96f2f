"""Inbound WhatsApp traffic: webhook verification, message routing, replies.

Slash commands go to the stateless command path. Everything else goes to the
dialogue orchestrator, or to the command path when no model is configured.
"""

from typing import Optional

from farmbot.logging_config import get_logger
from farmbot.schemas.whatsapp import InboundMessage, OutboundMessageRequest, WebhookPayload, WebhookResponse
from farmbot.services.alert_service import alert_error
from farmbot.services.command_service import (
    CommandDispatcher,
    CommandType,
    InvalidCommandError,
    is_slash_command,
    parse_command,
    usage_text,
)
from farmbot.services.dialogue_service import OUTCOME_DISPATCH_FAILED, DialogueOrchestrator
from farmbot.services.result import Result
from farmbot.services.whatsapp_service import WhatsAppService

logger = get_logger("messaging_service")

MSG_COMMAND_FAILED = "Sorry, the record could not be saved. Please try again later."
SUBSCRIBE_MODE = "subscribe"


class WebhookVerificationError(Exception):
    pass


class MessagingService:
    def __init__(
        self,
        whatsapp: WhatsAppService,
        commands: CommandDispatcher,
        orchestrator: Optional[DialogueOrchestrator] = None,
        verify_token: str = "",
    ):
        self.whatsapp = whatsapp
        self.commands = commands
        self.orchestrator = orchestrator
        self.verify_token = verify_token

    def verify_webhook_token(self, mode: Optional[str], token: Optional[str], challenge: Optional[str]) -> str:
        """Answer Meta's subscription handshake with the challenge."""
        if not mode or not token:
            raise WebhookVerificationError("missing mode or verify token")
        if mode.strip().lower() != SUBSCRIBE_MODE:
            raise WebhookVerificationError(f"unsupported hub.mode {mode}")
        if not self.verify_token or token != self.verify_token:
            raise WebhookVerificationError("invalid verify token")
        return challenge or ""

    def handle_webhook(self, payload: WebhookPayload) -> WebhookResponse:
        """Process every inbound message. One bad message does not stop the rest."""
        processed = 0
        failed = 0
        for message in payload.inbound_messages():
            try:
                if self.handle_message(message):
                    processed += 1
                else:
                    failed += 1
            except Exception as e:
                failed += 1
                logger.error(
                    f"Failed to handle inbound message: {e}",
                    extra={"context": {"message_id": message.id, "from": message.from_number}},
                    exc_info=True,
                )
        return WebhookResponse(success=failed == 0, processed=processed, failed=failed)

    def handle_message(self, message: InboundMessage) -> bool:
        """Reply to one message. Returns False when nothing could be sent."""
        text = message.extract_text().strip()
        if not text:
            logger.warning(
                "Empty message body",
                extra={"context": {"message_id": message.id, "type": message.type}},
            )
            return False

        if self.orchestrator is None or is_slash_command(text):
            reply = self.reply_to_command(text, message.from_number)
        else:
            reply = self.reply_to_dialogue(text, message.from_number)

        result = self.whatsapp.send_text(message.from_number, reply)
        if not result.ok:
            logger.error(
                "Reply not delivered",
                extra={"context": {"message_id": message.id, "error": result.describe()}},
            )
        return result.ok

    def reply_to_command(self, text: str, sender: str) -> str:
        command = parse_command(text)
        logger.info(
            "Parsed inbound command",
            extra={"context": {"from": sender, "command": command.type.value, "args": command.args}},
        )
        if command.type == CommandType.UNKNOWN:
            return usage_text(CommandType.UNKNOWN)

        try:
            return self.commands.handle_command(command, sender)
        except InvalidCommandError as e:
            return usage_text(e.command_type)
        except Exception as e:
            logger.error(
                f"Command save failed: {e}",
                extra={"context": {"from": sender, "command": command.type.value}},
            )
            alert_error("Command save failed", {"from": sender, "command": command.type.value, "error": str(e)})
            return MSG_COMMAND_FAILED

    def reply_to_dialogue(self, text: str, sender: str) -> str:
        turn = self.orchestrator.handle_turn(sender, text)
        if turn.outcome == OUTCOME_DISPATCH_FAILED:
            alert_error(
                "Report could not be saved",
                {
                    "from": sender,
                    "role": turn.role.value,
                    "record": turn.failed_kind.value if turn.failed_kind else None,
                    "error": turn.error,
                },
            )
        return turn.reply

    def send_outbound(self, request: OutboundMessageRequest) -> Result[Optional[str]]:
        """Operator push of a free-form message."""
        return self.whatsapp.send_text(request.to, request.message, preview_url=request.preview_url)
