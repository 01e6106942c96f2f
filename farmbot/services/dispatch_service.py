from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from farmbot.logging_config import get_logger
from farmbot.models import EggReceptionRecord, EggRecord, ExpenseRecord, MortalityRecord, SaleRecord, StockRecord
from farmbot.schemas.conversation import ConversationState, RecordKind
from farmbot.services.record_service import RecordRepository
from farmbot.services.role_router import Role

logger = get_logger("dispatch_service")

NOTHING_TO_REPORT = "RAS"
DEFAULT_SALE_CLIENT = "Walk-in"
FEED_ITEM_NAME = "Aliment"


class DispatchError(Exception):
    def __init__(self, kind: RecordKind, saved: list[RecordKind], cause: Exception):
        self.kind = kind
        self.saved = saved
        self.cause = cause
        super().__init__(f"Failed to save {kind.value} record: {cause}")


def today_in(tz_name: str) -> date:
    try:
        return datetime.now(ZoneInfo(tz_name)).date()
    except Exception:
        return datetime.now(timezone.utc).date()


def normalize_mortality_reason(quantity: int, reason: Optional[str]) -> Optional[str]:
    """Zero deaths with nothing said becomes the RAS marker."""
    if reason and reason.strip():
        return reason.strip()
    if quantity == 0:
        return NOTHING_TO_REPORT
    return None


def _mortality_reason(state: ConversationState) -> Optional[str]:
    parts = []
    if state.mortality_band:
        band = state.mortality_band.strip()
        parts.append(band if band.lower().startswith("bande") else f"Bande {band}")
    if state.mortality_reason:
        parts.append(state.mortality_reason)
    return " - ".join(parts) if parts else None


def build_primary_records(state: ConversationState, day: date, reporter: str) -> list[tuple[RecordKind, object]]:
    records = []

    bands = [state.eggs_band_1, state.eggs_band_2, state.eggs_band_3]
    if any(value is not None for value in bands):
        band_1, band_2, band_3 = (value or 0 for value in bands)
        records.append(
            (
                RecordKind.EGGS,
                EggRecord(
                    date=day,
                    band_1=band_1,
                    band_2=band_2,
                    band_3=band_3,
                    quantity=band_1 + band_2 + band_3,
                    notes=state.notes,
                    reported_by=reporter,
                ),
            )
        )

    per_band = [state.mortality_band_1, state.mortality_band_2, state.mortality_band_3]
    if state.mortality_qty is not None or any(value is not None for value in per_band):
        if state.mortality_qty is not None:
            quantity = state.mortality_qty
        else:
            quantity = sum(value or 0 for value in per_band)
        reason = _mortality_reason(state)
        if reason is None and state.mortality_qty is None:
            detail = [f"B{i}: {value}" for i, value in enumerate(per_band, start=1) if value]
            reason = ", ".join(detail) or None
        records.append(
            (
                RecordKind.MORTALITY,
                MortalityRecord(
                    date=day,
                    quantity=quantity,
                    reason=normalize_mortality_reason(quantity, reason),
                    reported_by=reporter,
                ),
            )
        )

    if state.feed_received and state.feed_qty is not None:
        records.append(
            (
                RecordKind.STOCK,
                StockRecord(
                    date=day,
                    item_name=FEED_ITEM_NAME,
                    quantity=state.feed_qty,
                    unit_price=0,
                    condition=state.notes,
                    reported_by=reporter,
                ),
            )
        )

    return records


def build_seller_records(state: ConversationState, day: date, reporter: str) -> list[tuple[RecordKind, object]]:
    records = []

    if state.sales_qty is not None:
        price = state.sales_price or 0.0
        paid = state.sales_paid if state.sales_paid is not None else state.sales_qty * price
        records.append(
            (
                RecordKind.SALE,
                SaleRecord(
                    date=day,
                    client=state.sales_client or DEFAULT_SALE_CLIENT,
                    quantity=state.sales_qty,
                    price_per_unit=price,
                    paid=paid,
                    reported_by=reporter,
                ),
            )
        )

    if state.reception_qty is not None:
        records.append(
            (
                RecordKind.RECEPTION,
                EggReceptionRecord(
                    date=day,
                    quantity=state.reception_qty,
                    unit_price=state.reception_price or 0.0,
                    reported_by=reporter,
                ),
            )
        )

    return records


def build_expense_records(state: ConversationState, day: date, reporter: str) -> list[tuple[RecordKind, object]]:
    if state.expense_category is None and state.expense_amount is None and state.expense_unit_price is None:
        return []

    quantity = state.expense_qty if state.expense_qty is not None else 1.0
    unit_price = state.expense_unit_price or 0.0
    amount = state.expense_amount if state.expense_amount is not None else quantity * unit_price
    return [
        (
            RecordKind.EXPENSE,
            ExpenseRecord(
                date=day,
                category=state.expense_category or "Divers",
                quantity=quantity,
                unit_price=unit_price,
                amount=amount,
                notes=state.expense_notes,
                reported_by=reporter,
            ),
        )
    ]


RECORD_BUILDERS = {
    Role.PRIMARY_REPORTER: build_primary_records,
    Role.SELLER: build_seller_records,
    Role.EXPENSE_MANAGER: build_expense_records,
}


def build_records(state: ConversationState, role: Role, day: date, reporter: str = "") -> list[tuple[RecordKind, object]]:
    """Records implied by the populated fields of a completed draft, in save order."""
    return RECORD_BUILDERS[role](state, day, reporter)


class RecordDispatcher:
    """Turns a completed draft into saved records."""

    def __init__(self, repository: RecordRepository, tz_name: str = "UTC", today: Optional[Callable[[], date]] = None):
        self.repository = repository
        self.today = today or (lambda: today_in(tz_name))
        self._savers = {
            RecordKind.EGGS: repository.save_egg_record,
            RecordKind.MORTALITY: repository.save_mortality_record,
            RecordKind.FEED: repository.save_feed_record,
            RecordKind.STOCK: repository.save_stock_record,
            RecordKind.SALE: repository.save_sale_record,
            RecordKind.RECEPTION: repository.save_egg_reception_record,
            RecordKind.EXPENSE: repository.save_expense_record,
        }

    def dispatch(
        self,
        state: ConversationState,
        role: Role,
        reporter: str = "",
        skip: Iterable[RecordKind] = (),
    ) -> list[RecordKind]:
        """Save every record for the draft, stopping at the first failure.

        Kinds in ``skip`` were saved by an earlier attempt and are not written
        again. Returns the kinds saved by this call plus the skipped ones.
        Raises DispatchError carrying the same list on failure.
        """
        saved = list(skip)
        for kind, record in build_records(state, role, self.today(), reporter):
            if kind in saved:
                logger.info(f"Skipping {kind.value} record, already saved", extra={"context": {"user_id": reporter}})
                continue
            try:
                self._savers[kind](record)
            except Exception as e:
                raise DispatchError(kind, saved, e) from e
            saved.append(kind)
        return saved
