"""SQLAlchemy ORM models for the whole-dataset document store"""

from sqlalchemy import Column, DateTime, Integer, JSON, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class DatasetDocumentRow(Base):
    """Single JSON document holding clients, loans and expenses"""

    __tablename__ = "dataset_document"

    name = Column(Text, primary_key=True, default="default")
    payload = Column(JSON, nullable=False)
    revision = Column(Integer, nullable=False, default=0)  # Bumped on every replace, last write wins
    last_updated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
