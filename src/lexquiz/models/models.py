"""Database models for the quiz engine."""
from sqlalchemy import JSON, Column, String

from lexquiz.models.base import Base, TimestampMixin


class StoreRecord(Base, TimestampMixin):
    """One key of the key-value store holding the whole value as JSON."""

    __tablename__ = "store_records"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
