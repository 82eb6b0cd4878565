from sqlalchemy import Column, String, BigInteger
from app.core.database import Base


class Sequence(Base):
    """One counter row per id sequence ("ticket", "update"); value is the last id handed out."""
    __tablename__ = "sequences"

    name = Column(String(32), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)
