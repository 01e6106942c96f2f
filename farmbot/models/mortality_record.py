import uuid

from sqlalchemy import TIMESTAMP, Column, Date, Integer, Text, Uuid
from sqlalchemy.sql import func

from farmbot.database import Base


class MortalityRecord(Base):
    __tablename__ = "mortality_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False)
    reason = Column(Text)  # "RAS" when nothing to report
    reported_by = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
