from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WhatsAppMetadata(BaseModel):
    display_phone_number: Optional[str] = None
    phone_number_id: Optional[str] = None


class ContactProfile(BaseModel):
    name: Optional[str] = None


class WhatsAppContact(BaseModel):
    wa_id: str
    profile: Optional[ContactProfile] = None


class TextContent(BaseModel):
    body: str = ""


class ButtonReply(BaseModel):
    id: str
    title: Optional[str] = None


class ListReply(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None


class InteractiveContent(BaseModel):
    type: str  # button_reply, list_reply
    button_reply: Optional[ButtonReply] = None
    list_reply: Optional[ListReply] = None


class MediaContent(BaseModel):
    id: str
    mime_type: Optional[str] = None
    sha256: Optional[str] = None
    filename: Optional[str] = None


class InboundMessage(BaseModel):
    from_number: str = Field(alias="from")
    id: str
    timestamp: Optional[str] = None
    type: str = "text"
    text: Optional[TextContent] = None
    interactive: Optional[InteractiveContent] = None
    image: Optional[MediaContent] = None
    audio: Optional[MediaContent] = None
    document: Optional[MediaContent] = None

    model_config = ConfigDict(populate_by_name=True)

    def extract_text(self) -> str:
        """Text body, or the id of the pressed button / selected list row."""
        if self.text is not None:
            return self.text.body
        if self.interactive is not None:
            if self.interactive.button_reply is not None:
                return self.interactive.button_reply.id
            if self.interactive.list_reply is not None:
                return self.interactive.list_reply.id
        return ""


class MessageStatus(BaseModel):
    id: str
    status: str  # sent, delivered, read, failed
    timestamp: Optional[str] = None
    recipient_id: Optional[str] = None


class WebhookError(BaseModel):
    code: int
    title: Optional[str] = None
    message: Optional[str] = None


class WebhookValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[WhatsAppMetadata] = None
    contacts: list[WhatsAppContact] = []
    messages: list[InboundMessage] = []
    statuses: list[MessageStatus] = []
    errors: list[WebhookError] = []


class WebhookChange(BaseModel):
    field: Optional[str] = None
    value: WebhookValue


class WebhookEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WebhookChange] = []


class WebhookPayload(BaseModel):
    object: Optional[str] = None
    entry: list[WebhookEntry] = []

    def inbound_messages(self) -> list[InboundMessage]:
        return [message for entry in self.entry for change in entry.changes for message in change.value.messages]


class OutboundMessageRequest(BaseModel):
    to: str = Field(min_length=1)
    message: str = Field(min_length=1)
    preview_url: bool = False


class WebhookResponse(BaseModel):
    success: bool
    processed: int = 0
    failed: int = 0
