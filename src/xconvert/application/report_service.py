# src/xconvert/application/report_service.py
"""
Report Service - Daily and Monthly Conversion Reports

This module aggregates the conversion log over one UTC calendar day or one
calendar month and renders daily reports as PDF (reportlab) or CSV. When the
store is unreachable the reports come back empty and flagged demo.

Files that USE this module:
- xconvert.application.scheduler (daily report job)
- xconvert.adapters.http.api (report routes)
- tests.test_report_service (unit tests)

Files that this module USES:
- xconvert.adapters.persistence (ConversionRepository, ConversionFilter)
- xconvert.adapters.reporting (PDF and CSV renderers)
- xconvert.application.contracts (ReportRequest, MonthlyReportQuery)
- xconvert.domain.models (DailyReport, MonthlyReport, DailyVolume)
"""
from __future__ import annotations

import calendar
import logging
from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from xconvert.adapters.persistence.repositories import ConversionFilter, ConversionRepository
from xconvert.adapters.reporting import render_daily_report_csv, render_daily_report_pdf
from xconvert.application.contracts import MonthlyReportQuery, ReportRequest, parse
from xconvert.domain.errors import StoreUnavailableError
from xconvert.domain.models import ConversionStats, DailyReport, DailyVolume, MonthlyReport

log = logging.getLogger(__name__)

DAILY_TOP_PAIRS = 5
MONTHLY_TOP_PAIRS = 10

PDF_MEDIA_TYPE = "application/pdf"
CSV_MEDIA_TYPE = "text/csv"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59.999999] UTC range of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    start, _ = day_bounds(date(year, month, 1))
    _, end = day_bounds(date(year, month, last_day))
    return start, end


def report_filename(day: date, fmt: str = "pdf") -> str:
    return f"conversion_report_{day.isoformat()}.{fmt}"


class ReportService:
    def __init__(self, db):
        """
        Args:
            db: Database client
        """
        self.db = db

    def daily_report(self, day: Union[date, str, None] = None) -> DailyReport:
        """
        Aggregate one UTC calendar day of conversions.

        Args:
            day: Date or YYYY-MM-DD string (defaults to today, UTC)

        Raises:
            ValidationError: If the date string is malformed
        """
        if not isinstance(day, date):
            day = parse(ReportRequest, {"date": day} if day else {}).report_date
        day = day or utc_today()

        start, end = day_bounds(day)
        flt = ConversionFilter(start=start, end=end)
        log.debug("Building daily report between %s and %s", start.isoformat(), end.isoformat())

        try:
            with self.db.session() as session:
                repo = ConversionRepository(session)
                report = DailyReport(
                    date=day,
                    conversions=repo.count(flt),
                    statistics=repo.stats(flt),
                    unique_pairs=repo.unique_pairs(flt),
                    popular_pairs=repo.popular_pairs(flt, limit=DAILY_TOP_PAIRS),
                )
        except StoreUnavailableError:
            log.warning("Daily report for %s generated in demo mode", day)
            return DailyReport(date=day, conversions=0, statistics=ConversionStats(), demo=True)

        log.info("Daily report %s: %d conversions", day, report.conversions)
        return report

    def monthly_report(self, query: Optional[Dict[str, Any]] = None) -> MonthlyReport:
        """
        Per-day volumes and top pairs for a calendar month.

        Args:
            query: {year?, month?} (defaults to the current UTC month)
        """
        q = parse(MonthlyReportQuery, query)
        today = utc_today()
        year = q.year or today.year
        month = q.month or today.month
        month_name = calendar.month_name[month]

        start, end = month_bounds(year, month)
        flt = ConversionFilter(start=start, end=end)
        try:
            with self.db.session() as session:
                repo = ConversionRepository(session)
                rows = repo.dates_and_amounts(flt)
                top_pairs = repo.popular_pairs(flt, limit=MONTHLY_TOP_PAIRS)
        except StoreUnavailableError:
            log.warning("Monthly report for %d-%02d generated in demo mode", year, month)
            return MonthlyReport(year=year, month=month, month_name=month_name, demo=True)

        by_day: "OrderedDict[int, list]" = OrderedDict()
        for ts, amount in rows:
            bucket = by_day.setdefault(ts.day, [0, 0.0])
            bucket[0] += 1
            bucket[1] += amount

        return MonthlyReport(
            year=year,
            month=month,
            month_name=month_name,
            daily_stats=[DailyVolume(day=d, conversions=c, amount=a) for d, (c, a) in by_day.items()],
            top_pairs=top_pairs,
        )

    def render_document(self, report: DailyReport) -> bytes:
        return render_daily_report_pdf(report)

    def render_csv(self, report: DailyReport) -> str:
        return render_daily_report_csv(report)

    def create_document(self, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Build a downloadable daily report.

        Args:
            data: {date?, format?} where format is "pdf" (default) or "csv"

        Returns:
            {date, filename, mediaType, content}
        """
        req = parse(ReportRequest, data)
        report = self.daily_report(req.report_date or utc_today())
        if req.format == "csv":
            content: Union[bytes, str] = self.render_csv(report)
            media_type = CSV_MEDIA_TYPE
        else:
            content = self.render_document(report)
            media_type = PDF_MEDIA_TYPE
        return {
            "date": report.date.isoformat(),
            "filename": report_filename(report.date, req.format),
            "mediaType": media_type,
            "content": content,
        }

    def write_document(self, report: DailyReport, directory: Union[str, Path]) -> Path:
        """Render a daily report to PDF and save it under directory."""
        target = Path(directory)
        target.mkdir(parents=True, exist_ok=True)
        path = target / report_filename(report.date)
        path.write_bytes(self.render_document(report))
        log.info("Daily report written to %s", path)
        return path
