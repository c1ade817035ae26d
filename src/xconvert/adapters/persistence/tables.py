# src/xconvert/adapters/persistence/tables.py
"""
Store Tables - SQLAlchemy ORM Mappings

Defines the two tables behind the service: the rate store (one row per
currency pair, soft-deleted through is_active) and the conversion log
(append-mostly history of performed conversions).

Files that USE this module:
- xconvert.adapters.persistence.database (creates the schema)
- xconvert.adapters.persistence.repositories (queries and aggregations)

Files that this module USES:
- xconvert.domain.models (Rate and Conversion for record conversion)
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

from xconvert.domain.models import Conversion, Rate

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(ts: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class RateRecord(Base):
    __tablename__ = "rates"
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", name="uq_rates_pair"),
        Index("ix_rates_source_last_updated", "source", "last_updated"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(String(10), nullable=False)
    to_currency = Column(String(10), nullable=False)
    rate = Column(Float, nullable=False)
    source = Column(String(32), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_domain(self) -> Rate:
        return Rate(
            id=self.id,
            from_currency=self.from_currency,
            to_currency=self.to_currency,
            rate=float(self.rate),
            source=self.source,
            last_updated=as_utc(self.last_updated),
            is_active=bool(self.is_active),
        )

    def __repr__(self) -> str:
        return f"<RateRecord {self.from_currency}->{self.to_currency}: {self.rate} ({self.source})>"


class ConversionRecord(Base):
    __tablename__ = "conversions"
    __table_args__ = (
        Index("ix_conversions_date", "conversion_date"),
        Index("ix_conversions_pair", "from_currency", "to_currency"),
        Index("ix_conversions_date_pair", "conversion_date", "from_currency", "to_currency"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(String(10), nullable=False)
    to_currency = Column(String(10), nullable=False)
    original_amount = Column(Float, nullable=False)
    converted_amount = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    rate_source = Column(String(32), nullable=False)
    conversion_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    user_ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    def to_domain(self) -> Conversion:
        return Conversion(
            id=self.id,
            from_currency=self.from_currency,
            to_currency=self.to_currency,
            original_amount=float(self.original_amount),
            converted_amount=float(self.converted_amount),
            rate=float(self.rate),
            rate_source=self.rate_source,
            conversion_date=as_utc(self.conversion_date),
            user_ip=self.user_ip or "unknown",
            user_agent=self.user_agent or "unknown",
        )

    def __repr__(self) -> str:
        return (
            f"<ConversionRecord {self.original_amount} {self.from_currency}"
            f" -> {self.converted_amount} {self.to_currency}>"
        )
