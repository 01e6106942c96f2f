import uuid

from sqlalchemy import TIMESTAMP, Column, Date, Float, Text, Uuid
from sqlalchemy.sql import func

from farmbot.database import Base


class ExpenseRecord(Base):
    __tablename__ = "expense_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    category = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit_price = Column(Float, nullable=False, default=0)
    amount = Column(Float, nullable=False)  # quantity * unit_price unless given
    notes = Column(Text)
    reported_by = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
