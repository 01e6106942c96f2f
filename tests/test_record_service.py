from datetime import date
from unittest.mock import MagicMock

import pytest

from farmbot.models import EggReceptionRecord, EggRecord, ExpenseRecord, FeedRecord, MortalityRecord, SaleRecord, StockRecord
from farmbot.services.record_service import RecordRepository

DAY = date(2024, 3, 15)


class TestRecordRepository:
    def test_save_egg_record(self, repository, session_factory):
        record = EggRecord(date=DAY, band_1=120, band_2=130, band_3=110, quantity=360, reported_by="u1")
        repository.save_egg_record(record)

        assert record.id is not None
        db = session_factory()
        try:
            rows = db.query(EggRecord).all()
            assert len(rows) == 1
            assert rows[0].quantity == 360
            assert rows[0].created_at is not None
        finally:
            db.close()

    def test_every_table_accepts_a_row(self, repository, session_factory):
        repository.save_mortality_record(MortalityRecord(date=DAY, quantity=0, reason="RAS"))
        repository.save_feed_record(FeedRecord(date=DAY, feed_kg=150.5, population=2400))
        repository.save_stock_record(StockRecord(date=DAY, item_name="Aliment", quantity=12, unit_price=0))
        repository.save_sale_record(SaleRecord(date=DAY, client="Walk-in", quantity=10, price_per_unit=2500, paid=25000))
        repository.save_expense_record(
            ExpenseRecord(date=DAY, category="vaccin", quantity=1, unit_price=55000, amount=55000)
        )
        repository.save_egg_reception_record(EggReceptionRecord(date=DAY, quantity=30, unit_price=2200))

        db = session_factory()
        try:
            for model in (MortalityRecord, FeedRecord, StockRecord, SaleRecord, ExpenseRecord, EggReceptionRecord):
                assert db.query(model).count() == 1
        finally:
            db.close()

    def test_saves_are_not_idempotent(self, repository, session_factory):
        repository.save_egg_record(EggRecord(date=DAY, quantity=1))
        repository.save_egg_record(EggRecord(date=DAY, quantity=1))

        db = session_factory()
        try:
            assert db.query(EggRecord).count() == 2
        finally:
            db.close()

    def test_saved_record_readable_after_session_closed(self, repository):
        record = SaleRecord(date=DAY, client="Mariama", quantity=3, price_per_unit=2500, paid=7500)
        repository.save_sale_record(record)
        assert record.client == "Mariama"

    def test_rolls_back_and_closes_on_error(self):
        db = MagicMock()
        db.commit.side_effect = RuntimeError("connection lost")
        repository = RecordRepository(lambda: db)

        with pytest.raises(RuntimeError):
            repository.save_egg_record(EggRecord(date=DAY, quantity=1))

        db.rollback.assert_called_once()
        db.close.assert_called_once()
