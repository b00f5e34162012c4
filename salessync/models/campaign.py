import sqlalchemy as sa
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from salessync.core.database import Base, utcnow

CAMPAIGN_TYPES = ("FIELD_MARKETING", "STREET_MARKETING", "BRAND_ACTIVATION", "PRODUCT_LAUNCH", "PROMOTIONAL")
CAMPAIGN_STATUSES = ("DRAFT", "ACTIVE", "PAUSED", "COMPLETED", "CANCELLED")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(30), nullable=False, default="FIELD_MARKETING")
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    budget = Column(Numeric(12, 2), nullable=True)
    status = Column(String(20), nullable=False, default="DRAFT", index=True)
    materials = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    targets = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    territories = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    brand = relationship("Brand", back_populates="campaigns")
    activations = relationship("Activation", back_populates="campaign")
