import uuid

from sqlalchemy import TIMESTAMP, Column, Date, Integer, Text, Uuid
from sqlalchemy.sql import func

from farmbot.database import Base


class EggRecord(Base):
    __tablename__ = "egg_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    band_1 = Column(Integer)
    band_2 = Column(Integer)
    band_3 = Column(Integer)
    quantity = Column(Integer, nullable=False)  # total across bands
    notes = Column(Text)
    reported_by = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
