"""Turn the model's raw reply into a typed (state, reply) pair.

The model is asked for a single JSON object::

    {"updated_state": {...fields...}, "reply": "text for the user"}

Two defects show up often enough to repair: Markdown fences around the
object, and literal line breaks inside the ``reply`` string. The second is
fixed by a targeted pass that only touches the ``reply`` value span.
"""

import json
from dataclasses import dataclass

from pydantic import ValidationError

from farmbot.logging_config import get_logger
from farmbot.schemas.conversation import BOOKKEEPING_FIELDS, ConversationState

logger = get_logger("extraction_parser")

STATE_KEY = "updated_state"
REPLY_KEY = "reply"


class ExtractionError(Exception):
    """The extractor could not produce a result (network, timeout, provider error)."""


class MalformedExtractionError(ExtractionError):
    """The model answered, but the answer could not be parsed."""

    def __init__(self, message: str, raw_text: str):
        self.raw_text = raw_text
        super().__init__(message)


@dataclass
class ExtractionResult:
    state: ConversationState
    reply: str


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
        if text.endswith("```"):
            text = text[:-3]
    elif text.startswith("```"):
        text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
    return text.strip()


def escape_reply_newlines(text: str, key: str = REPLY_KEY) -> str:
    """Escape raw CR/LF characters inside the reply string value.

    The value span runs from the first quote after the colon that follows
    the key, to the last quote before the final closing brace. Nothing
    outside that span is modified. Returns the text unchanged when the span
    cannot be located.
    """
    key_index = text.find(f'"{key}"')
    if key_index == -1:
        return text

    colon_index = text.find(":", key_index + len(key) + 2)
    if colon_index == -1:
        return text

    first_quote = text.find('"', colon_index + 1)
    if first_quote == -1:
        return text

    closing_brace = text.rfind("}")
    if closing_brace == -1:
        closing_brace = len(text)
    last_quote = text.rfind('"', 0, closing_brace)
    if last_quote <= first_quote:
        return text

    value = text[first_quote + 1 : last_quote]
    value = value.replace("\r", "\\r").replace("\n", "\\n")
    return text[: first_quote + 1] + value + text[last_quote:]


def _loads(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _validate_state(state_data: dict, raw_text: str) -> ConversationState:
    """Validate the state, dropping fields whose values cannot be coerced."""
    try:
        return ConversationState.model_validate(state_data)
    except ValidationError as e:
        rejected = {error["loc"][0] for error in e.errors() if error["loc"]}

    logger.warning(
        "Dropping invalid state fields",
        extra={"context": {"fields": sorted(rejected), "values": {k: state_data.get(k) for k in rejected}}},
    )
    kept = {k: v for k, v in state_data.items() if k not in rejected}
    try:
        return ConversationState.model_validate(kept)
    except ValidationError as e:
        raise MalformedExtractionError(f"Invalid state fields: {e.error_count()} error(s)", raw_text) from e


def parse_extraction(raw_text: str) -> ExtractionResult:
    """Parse a raw model reply. Raises MalformedExtractionError."""
    if not raw_text or not raw_text.strip():
        raise MalformedExtractionError("Empty model output", raw_text or "")

    text = strip_code_fences(raw_text)
    if text.startswith('"'):
        # continuation of a prefilled "{"
        text = "{" + text

    payload = _loads(text)
    if payload is None:
        payload = _loads(escape_reply_newlines(text))
    if payload is None:
        raise MalformedExtractionError("Model output is not valid JSON", raw_text)

    if not isinstance(payload, dict):
        raise MalformedExtractionError("Model output is not a JSON object", raw_text)

    state_data = payload.get(STATE_KEY)
    reply = payload.get(REPLY_KEY)
    if not isinstance(state_data, dict):
        raise MalformedExtractionError(f"Missing '{STATE_KEY}' object", raw_text)
    if not isinstance(reply, str):
        raise MalformedExtractionError(f"Missing '{REPLY_KEY}' string", raw_text)

    state_data = {k: v for k, v in state_data.items() if k not in BOOKKEEPING_FIELDS and k != "history"}
    state = _validate_state(state_data, raw_text)

    return ExtractionResult(state=state, reply=reply)
