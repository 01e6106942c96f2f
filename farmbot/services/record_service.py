from typing import Callable

from sqlalchemy.orm import Session

from farmbot.logging_config import get_logger
from farmbot.models import (
    EggReceptionRecord,
    EggRecord,
    ExpenseRecord,
    FeedRecord,
    MortalityRecord,
    SaleRecord,
    StockRecord,
)

logger = get_logger("record_service")


class RecordRepository:
    """Persistence for farm records. Each save is its own transaction.

    Saves are not idempotent: calling one twice writes two rows.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _save(self, record) -> None:
        db = self.session_factory()
        try:
            db.add(record)
            db.commit()
            # keep attributes readable once the session is closed
            db.refresh(record)
            db.expunge(record)
            logger.debug(f"Saved {record.__tablename__} row {record.id}")
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def save_egg_record(self, record: EggRecord) -> None:
        self._save(record)

    def save_mortality_record(self, record: MortalityRecord) -> None:
        self._save(record)

    def save_feed_record(self, record: FeedRecord) -> None:
        self._save(record)

    def save_stock_record(self, record: StockRecord) -> None:
        self._save(record)

    def save_sale_record(self, record: SaleRecord) -> None:
        self._save(record)

    def save_expense_record(self, record: ExpenseRecord) -> None:
        self._save(record)

    def save_egg_reception_record(self, record: EggReceptionRecord) -> None:
        self._save(record)
