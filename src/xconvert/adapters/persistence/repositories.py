# src/xconvert/adapters/persistence/repositories.py
"""
Repositories - Queries and Aggregations over the Store

Thin query objects bound to a session. The rate repository implements the
pair upsert; the conversion repository implements listing, point lookups and
the aggregation pipelines used by stats and reports.

Files that USE this module:
- xconvert.application.rates_service (RateRepository)
- xconvert.application.convert_service (ConversionRepository)
- xconvert.application.report_service (ConversionRepository aggregations)
- xconvert.application.csv_import_service (RateRepository via RatesService)

Files that this module USES:
- xconvert.adapters.persistence.tables (RateRecord, ConversionRecord)
- xconvert.domain.models (domain objects returned to services)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from xconvert.adapters.persistence.tables import ConversionRecord, RateRecord, as_utc, utcnow
from xconvert.domain.models import Conversion, ConversionStats, PairUsage, Rate

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionFilter:
    """Optional pair and inclusive date range restricting a conversion query."""
    from_currency: Optional[str] = None
    to_currency: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def _utc(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class RateRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, rate_id: int) -> Optional[RateRecord]:
        return self.session.get(RateRecord, rate_id)

    def find_by_pair(self, from_currency: str, to_currency: str,
                     active_only: bool = False) -> Optional[RateRecord]:
        stmt = select(RateRecord).where(
            RateRecord.from_currency == from_currency,
            RateRecord.to_currency == to_currency,
        )
        if active_only:
            stmt = stmt.where(RateRecord.is_active.is_(True))
        return self.session.scalars(stmt).first()

    def find_active(self, from_currency: Optional[str] = None, to_currency: Optional[str] = None,
                    source: Optional[str] = None, limit: int = 50, skip: int = 0) -> List[Rate]:
        stmt = select(RateRecord).where(RateRecord.is_active.is_(True))
        if from_currency:
            stmt = stmt.where(RateRecord.from_currency == from_currency)
        if to_currency:
            stmt = stmt.where(RateRecord.to_currency == to_currency)
        if source:
            stmt = stmt.where(RateRecord.source == source)
        stmt = stmt.order_by(RateRecord.last_updated.desc(), RateRecord.id.desc()).offset(skip).limit(limit)
        return [r.to_domain() for r in self.session.scalars(stmt)]

    def upsert(self, from_currency: str, to_currency: str, rate: float,
               source: str) -> Tuple[Rate, bool]:
        """
        Insert or update the single row for a pair, active or not.

        Returns:
            (stored rate, True if a new row was inserted)
        """
        now = utcnow()
        record = self.find_by_pair(from_currency, to_currency)
        if record is None:
            record = RateRecord(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=rate,
                source=source,
                last_updated=now,
                is_active=True,
            )
            self.session.add(record)
            try:
                self.session.flush()
                return record.to_domain(), True
            except IntegrityError:
                # A concurrent writer inserted the pair first; last write wins
                self.session.rollback()
                log.info("Concurrent insert for %s->%s, updating instead", from_currency, to_currency)
                record = self.find_by_pair(from_currency, to_currency)
                if record is None:
                    raise

        record.rate = rate
        record.source = source
        record.last_updated = now
        self.session.flush()
        return record.to_domain(), False

    def update(self, record: RateRecord, rate: Optional[float] = None,
               source: Optional[str] = None, is_active: Optional[bool] = None) -> Rate:
        if rate is not None:
            record.rate = rate
        if source is not None:
            record.source = source
        if is_active is not None:
            record.is_active = is_active
        record.last_updated = utcnow()
        self.session.flush()
        return record.to_domain()


class ConversionRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, conversion: Conversion) -> Conversion:
        record = ConversionRecord(
            from_currency=conversion.from_currency,
            to_currency=conversion.to_currency,
            original_amount=conversion.original_amount,
            converted_amount=conversion.converted_amount,
            rate=conversion.rate,
            rate_source=conversion.rate_source,
            conversion_date=_utc(conversion.conversion_date),
            user_ip=conversion.user_ip,
            user_agent=conversion.user_agent,
        )
        self.session.add(record)
        self.session.flush()
        return record.to_domain()

    def get(self, conversion_id: int) -> Optional[ConversionRecord]:
        return self.session.get(ConversionRecord, conversion_id)

    def delete(self, record: ConversionRecord) -> None:
        self.session.delete(record)
        self.session.flush()

    def _where(self, stmt, flt: Optional[ConversionFilter]):
        if flt is None:
            return stmt
        if flt.from_currency:
            stmt = stmt.where(ConversionRecord.from_currency == flt.from_currency)
        if flt.to_currency:
            stmt = stmt.where(ConversionRecord.to_currency == flt.to_currency)
        if flt.start is not None:
            stmt = stmt.where(ConversionRecord.conversion_date >= _utc(flt.start))
        if flt.end is not None:
            stmt = stmt.where(ConversionRecord.conversion_date <= _utc(flt.end))
        return stmt

    def find(self, flt: Optional[ConversionFilter] = None, limit: int = 50,
             skip: int = 0) -> List[Conversion]:
        stmt = self._where(select(ConversionRecord), flt)
        stmt = stmt.order_by(ConversionRecord.conversion_date.desc(), ConversionRecord.id.desc())
        stmt = stmt.offset(skip).limit(limit)
        return [r.to_domain() for r in self.session.scalars(stmt)]

    def count(self, flt: Optional[ConversionFilter] = None) -> int:
        stmt = self._where(select(func.count(ConversionRecord.id)), flt)
        return int(self.session.scalar(stmt) or 0)

    def stats(self, flt: Optional[ConversionFilter] = None) -> ConversionStats:
        stmt = self._where(
            select(
                func.count(ConversionRecord.id),
                func.sum(ConversionRecord.original_amount),
                func.sum(ConversionRecord.converted_amount),
                func.avg(ConversionRecord.rate),
                func.min(ConversionRecord.rate),
                func.max(ConversionRecord.rate),
            ),
            flt,
        )
        count, total_original, total_converted, avg_rate, min_rate, max_rate = self.session.execute(stmt).one()
        if not count:
            return ConversionStats()
        return ConversionStats(
            total_conversions=int(count),
            total_original_amount=float(total_original or 0),
            total_converted_amount=float(total_converted or 0),
            average_rate=float(avg_rate or 0),
            min_rate=float(min_rate or 0),
            max_rate=float(max_rate or 0),
        )

    def popular_pairs(self, flt: Optional[ConversionFilter] = None, limit: int = 10) -> List[PairUsage]:
        """Pairs by conversion count, ties broken by which pair was logged first."""
        conversion_count = func.count(ConversionRecord.id).label("conversion_count")
        stmt = self._where(
            select(
                ConversionRecord.from_currency,
                ConversionRecord.to_currency,
                conversion_count,
                func.sum(ConversionRecord.original_amount).label("total_amount"),
            ),
            flt,
        )
        stmt = (
            stmt.group_by(ConversionRecord.from_currency, ConversionRecord.to_currency)
            .order_by(conversion_count.desc(), func.min(ConversionRecord.id))
            .limit(limit)
        )
        return [
            PairUsage(
                from_currency=row.from_currency,
                to_currency=row.to_currency,
                conversion_count=int(row.conversion_count),
                total_amount=float(row.total_amount or 0),
            )
            for row in self.session.execute(stmt)
        ]

    def unique_pairs(self, flt: Optional[ConversionFilter] = None) -> List[dict]:
        stmt = self._where(
            select(ConversionRecord.from_currency, ConversionRecord.to_currency).distinct(), flt
        ).order_by(ConversionRecord.from_currency, ConversionRecord.to_currency)
        return [{"from": row[0], "to": row[1]} for row in self.session.execute(stmt)]

    def dates_and_amounts(self, flt: Optional[ConversionFilter] = None) -> List[Tuple[datetime, float]]:
        stmt = self._where(
            select(ConversionRecord.conversion_date, ConversionRecord.original_amount), flt
        ).order_by(ConversionRecord.conversion_date)
        return [(as_utc(row[0]), float(row[1])) for row in self.session.execute(stmt)]
