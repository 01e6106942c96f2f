import uuid

from sqlalchemy import TIMESTAMP, Column, Date, Float, Integer, Text, Uuid
from sqlalchemy.sql import func

from farmbot.database import Base


class SaleRecord(Base):
    __tablename__ = "sale_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    client = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)  # trays
    price_per_unit = Column(Float, nullable=False, default=0)
    paid = Column(Float, nullable=False, default=0)
    reported_by = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
