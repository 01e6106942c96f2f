import uuid

from sqlalchemy import TIMESTAMP, Column, Date, Float, Text, Uuid
from sqlalchemy.sql import func

from farmbot.database import Base


class StockRecord(Base):
    __tablename__ = "stock_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    item_name = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, default=0)
    condition = Column(Text)
    reported_by = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
