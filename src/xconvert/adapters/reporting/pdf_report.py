# src/xconvert/adapters/reporting/pdf_report.py
"""
PDF Report Renderer - Daily Conversion Report

Lays out a daily report as a single PDF: title, date, summary statistics
table, most popular pairs table, a notice when the day had no conversions
and a generation timestamp. Output is written to memory and returned as bytes.

Files that USE this module:
- xconvert.application.report_service (render_document)
- tests.test_report_service (unit tests)

Files that this module USES:
- xconvert.adapters.reporting.styles (paragraph/table styles)
- xconvert.domain.models (DailyReport)
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from io import BytesIO
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from xconvert.adapters.reporting.styles import (
    MARGIN,
    SPACE_MEDIUM,
    STYLE_FOOTER,
    STYLE_NOTICE,
    STYLE_SECTION,
    STYLE_SUBTITLE,
    STYLE_TITLE,
    TABLE_STYLE_DEFAULT,
)
from xconvert.domain.models import DailyReport

log = logging.getLogger(__name__)

REPORT_TITLE = "Currency Conversion Daily Report"
EMPTY_NOTICE = "Note: This is a demo report. No conversion data available."


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _table(rows: List[List[str]], col_widths: Optional[List[float]] = None) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(TABLE_STYLE_DEFAULT))
    return table


def statistics_rows(report: DailyReport) -> List[List[str]]:
    stats = report.statistics
    return [
        ["Metric", "Value"],
        ["Total Conversions", str(stats.total_conversions)],
        ["Total Original Amount", _money(stats.total_original_amount)],
        ["Total Converted Amount", _money(stats.total_converted_amount)],
        ["Average Rate", f"{stats.average_rate:.4f}"],
        ["Unique Currency Pairs", str(len(report.unique_pairs))],
    ]


def popular_pair_rows(report: DailyReport) -> List[List[str]]:
    rows = [["From", "To", "Conversions", "Total Amount"]]
    for pair in report.popular_pairs:
        rows.append([
            pair.from_currency,
            pair.to_currency,
            str(pair.conversion_count),
            _money(pair.total_amount),
        ])
    return rows


def render_daily_report_pdf(report: DailyReport, generated_at: Optional[datetime] = None) -> bytes:
    """
    Render a daily report to PDF.

    Args:
        report: Aggregated data for the day
        generated_at: Timestamp printed in the footer (defaults to now, UTC)

    Returns:
        PDF document bytes
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=MARGIN,
        leftMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=f"{REPORT_TITLE} {report.date.isoformat()}",
        author="xConvert",
        invariant=True,
    )
    width = doc.width

    story = [
        Paragraph(REPORT_TITLE, STYLE_TITLE),
        Paragraph(f"Date: {report.date.strftime('%B %d, %Y')}", STYLE_SUBTITLE),
        Paragraph("Summary Statistics", STYLE_SECTION),
        _table(statistics_rows(report), [width / 2, width / 2]),
        Spacer(1, SPACE_MEDIUM),
        Paragraph("Most Popular Currency Pairs", STYLE_SECTION),
        _table(popular_pair_rows(report), [width / 4] * 4),
    ]

    if report.statistics.total_conversions == 0:
        story.append(Paragraph(EMPTY_NOTICE, STYLE_NOTICE))

    story.append(
        Paragraph(f"Report generated on {generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}", STYLE_FOOTER)
    )

    doc.build(story)
    pdf = buffer.getvalue()
    log.info("Rendered daily report PDF for %s (%.2f KB)", report.date, len(pdf) / 1024)
    return pdf
