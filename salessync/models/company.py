import sqlalchemy as sa
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from salessync.core.database import Base, utcnow

SUBSCRIPTION_TIERS = ("basic", "professional", "enterprise")


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    logo = Column(String, nullable=True)
    settings = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=False, default=dict)
    subscription_tier = Column(String(30), nullable=False, default="basic")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    users = relationship("User", back_populates="company")
