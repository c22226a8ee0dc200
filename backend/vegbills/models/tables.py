"""SQLAlchemy ORM models for the vegetable bills API.

These models define the relational schema: the vegetable catalogue,
providers, signers and the bills issued against them.  Bill line items
are stored denormalised in a JSON column; each one references a
catalogue row by id.

If you extend or modify these models remember to add an alembic
revision or call the ``init_db`` helper during development to recreate
the tables.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Numeric,
    ForeignKey,
    JSON,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from vegbills.core.database import Base
from vegbills.utils.helpers import new_id, utcnow

MONEY = Numeric(12, 2, asdecimal=True)


class Vegetable(Base):
    """Catalogue entry; ``name`` is the reconciliation key."""

    __tablename__ = "vegetables"
    __table_args__ = (
        # Durable uniqueness: concurrent first sightings of a name collide here
        UniqueConstraint("name", name="vegetables_name_unique"),
        CheckConstraint(
            "NOT has_fixed_price OR (fixed_price IS NOT NULL AND fixed_price > 0)",
            name="vegetables_fixed_price_present",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    has_fixed_price = Column(Boolean, nullable=False, default=False)
    fixed_price = Column(MONEY, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Provider(Base):
    """Supplier a bill is issued against."""

    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    mobile = Column(String, nullable=False)
    address = Column(String, nullable=True)

    bills = relationship("Bill", back_populates="provider")


class Signer(Base):
    """Named person attesting bills."""

    __tablename__ = "signers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)


class Bill(Base):
    """Purchase bill; immutable once written."""

    __tablename__ = "bills"
    __table_args__ = (
        Index("ix_bills_date", "date"),
        Index("ix_bills_provider_name", "provider_name"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False)
    provider_name = Column(String, nullable=False)
    items = Column(JSON, nullable=False)
    total = Column(MONEY, nullable=False)
    date = Column(DateTime, default=utcnow, nullable=False)
    signer = Column(String, ForeignKey("signers.name"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    provider = relationship("Provider", back_populates="bills")
