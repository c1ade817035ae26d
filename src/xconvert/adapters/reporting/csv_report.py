# src/xconvert/adapters/reporting/csv_report.py
"""
CSV Report Renderer

Flat CSV rendering of a daily report: one section of metrics followed by the
popular pairs, separated by a blank line.

Files that USE this module:
- xconvert.application.report_service (render_csv)

Files that this module USES:
- xconvert.adapters.reporting.pdf_report (shared row builders)
- xconvert.domain.models (DailyReport)
"""
import csv
import io

from xconvert.adapters.reporting.pdf_report import popular_pair_rows, statistics_rows
from xconvert.domain.models import DailyReport


def render_daily_report_csv(report: DailyReport) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(["Date", report.date.isoformat()])
    writer.writerows(statistics_rows(report))
    writer.writerow([])
    writer.writerows(popular_pair_rows(report))
    return out.getvalue()
