# src/xconvert/adapters/reporting/__init__.py
"""
Reporting Adapters - Document Rendering

This package renders daily reports as PDF (reportlab) and CSV.
"""

from xconvert.adapters.reporting.csv_report import render_daily_report_csv
from xconvert.adapters.reporting.pdf_report import render_daily_report_pdf

__all__ = ["render_daily_report_pdf", "render_daily_report_csv"]
