from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from farmbot.services.state_machine import DialogueStep, coerce_step


class RecordKind(str, Enum):
    EGGS = "eggs"
    MORTALITY = "mortality"
    FEED = "feed"
    STOCK = "stock"
    SALE = "sale"
    RECEPTION = "reception"
    EXPENSE = "expense"


class HistoryTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


# Fields the merge engine treats specially or that never go to the model.
CONTROL_FIELDS = ("step", "history")
BOOKKEEPING_FIELDS = ("saved_records",)

TEXT_FIELDS = ("mortality_band", "mortality_reason", "notes", "sales_client", "expense_category", "expense_notes")
NUMBER_FIELDS = (
    "eggs_band_1",
    "eggs_band_2",
    "eggs_band_3",
    "mortality_qty",
    "mortality_band_1",
    "mortality_band_2",
    "mortality_band_3",
    "feed_qty",
    "sales_qty",
    "sales_price",
    "sales_paid",
    "reception_qty",
    "reception_price",
    "expense_qty",
    "expense_unit_price",
    "expense_amount",
)

FRENCH_BOOLEANS = {"oui": True, "non": False}


class ConversationState(BaseModel):
    """Draft of one user's report, filled in over several turns."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    step: DialogueStep = DialogueStep.COLLECTING

    # primary reporter
    eggs_band_1: Optional[int] = None
    eggs_band_2: Optional[int] = None
    eggs_band_3: Optional[int] = None
    mortality_qty: Optional[int] = None
    mortality_band: Optional[str] = None
    mortality_band_1: Optional[int] = None
    mortality_band_2: Optional[int] = None
    mortality_band_3: Optional[int] = None
    mortality_reason: Optional[str] = None
    feed_received: Optional[bool] = None
    feed_qty: Optional[float] = None
    notes: Optional[str] = None

    # seller
    sales_qty: Optional[int] = None
    sales_price: Optional[float] = None
    sales_client: Optional[str] = None
    sales_paid: Optional[float] = None
    reception_qty: Optional[int] = None
    reception_price: Optional[float] = None

    # expense manager
    expense_category: Optional[str] = None
    expense_qty: Optional[float] = None
    expense_unit_price: Optional[float] = None
    expense_amount: Optional[float] = None
    expense_notes: Optional[str] = None

    saved_records: Optional[list[RecordKind]] = None

    history: list[HistoryTurn] = []

    @field_validator("step", mode="before")
    @classmethod
    def _coerce_step(cls, value):
        return coerce_step(value)

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_text_is_null(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(*NUMBER_FIELDS, mode="before")
    @classmethod
    def _blank_number_is_null(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("feed_received", mode="before")
    @classmethod
    def _yes_no(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if not value:
                return None
            return FRENCH_BOOLEANS.get(value, value)
        return value

    @field_validator("history", mode="before")
    @classmethod
    def _null_history(cls, value):
        return [] if value is None else value

    @classmethod
    def data_fields(cls) -> list[str]:
        """Names of every report field, i.e. everything but step, history and bookkeeping."""
        return [
            name
            for name in cls.model_fields
            if name not in CONTROL_FIELDS and name not in BOOKKEEPING_FIELDS
        ]

    def without_history(self) -> "ConversationState":
        return self.model_copy(update={"history": []}, deep=True)

    def prompt_payload(self) -> dict:
        """State as shown to the extractor: no history, no bookkeeping."""
        return self.model_dump(mode="json", exclude={"history", *BOOKKEEPING_FIELDS})

    def populated_fields(self) -> dict:
        return {name: getattr(self, name) for name in self.data_fields() if getattr(self, name) is not None}
