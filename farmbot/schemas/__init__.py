from farmbot.schemas.conversation import ConversationState, HistoryTurn, RecordKind
from farmbot.schemas.whatsapp import InboundMessage, OutboundMessageRequest, WebhookPayload, WebhookResponse

__all__ = [
    "ConversationState",
    "HistoryTurn",
    "RecordKind",
    "InboundMessage",
    "OutboundMessageRequest",
    "WebhookPayload",
    "WebhookResponse",
]
