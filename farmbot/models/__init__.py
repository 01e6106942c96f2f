from farmbot.models.egg_reception_record import EggReceptionRecord
from farmbot.models.egg_record import EggRecord
from farmbot.models.expense_record import ExpenseRecord
from farmbot.models.feed_record import FeedRecord
from farmbot.models.mortality_record import MortalityRecord
from farmbot.models.sale_record import SaleRecord
from farmbot.models.stock_record import StockRecord

__all__ = [
    "EggRecord",
    "MortalityRecord",
    "FeedRecord",
    "StockRecord",
    "SaleRecord",
    "ExpenseRecord",
    "EggReceptionRecord",
]
