from sqlalchemy import Column, Integer, String, Float, DateTime, Text, CheckConstraint
from datetime import datetime
from .database import Base


class Rate(Base):
    """Catalog entry - known unit rate for a named work item."""
    __tablename__ = "rates"
    __table_args__ = (
        CheckConstraint("rate_value >= 0", name="ck_rates_rate_value_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=False)
    rate_value = Column(Float, nullable=False)
    keywords = Column(Text, nullable=True)  # Free text, tokenized at match time
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BoqItem(Base):
    """Priced line from the latest BOQ upload. Rows are replaced wholesale per upload."""
    __tablename__ = "boq_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_boq_items_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    description = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    rate = Column(Float, nullable=True)   # Null when neither catalog nor AI priced it
    total = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
