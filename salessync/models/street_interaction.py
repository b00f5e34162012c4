import sqlalchemy as sa
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from salessync.core.database import Base, utcnow

INTERACTION_STATUSES = ("IN_PROGRESS", "COMPLETED")
INTERACTION_OUTCOMES = ("POSITIVE", "NEUTRAL", "NEGATIVE")


class StreetInteraction(Base):
    """One street-marketing conversation between an agent and a passer-by."""

    __tablename__ = "street_interactions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    customer_type = Column(String(30), nullable=False, default="PROSPECT")
    location = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    customer_data = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    status = Column(String(20), nullable=False, default="IN_PROGRESS", index=True)
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    outcome = Column(String(20), nullable=True)
    follow_up_required = Column(Boolean, nullable=False, default=False)
    quality_metrics = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    campaign = relationship("Campaign")
    customer = relationship("Customer")
