# src/xconvert/adapters/reporting/styles.py
"""
Report Styles - Colors, Layout Constants and Paragraph/Table Styles

Files that USE this module:
- xconvert.adapters.reporting.pdf_report

Files that this module USES:
- reportlab (styles, colors, units)
"""
from reportlab.lib.colors import HexColor, white
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch

# ============================================================================
# COLORS
# ============================================================================

COLOR_PRIMARY = HexColor("#2C3E50")
COLOR_SECONDARY = HexColor("#34495E")
COLOR_SECTION = HexColor("#7F8C8D")
COLOR_MUTED = HexColor("#95A5A6")
COLOR_ALERT = HexColor("#E74C3C")
COLOR_LIGHT = HexColor("#ECF0F1")

# ============================================================================
# LAYOUT
# ============================================================================

MARGIN = 0.75 * inch
SPACE_MEDIUM = 0.2 * inch

# ============================================================================
# TEXT STYLES
# ============================================================================

_base_styles = getSampleStyleSheet()

STYLE_TITLE = ParagraphStyle(
    "ReportTitle",
    parent=_base_styles["Heading1"],
    fontName="Helvetica-Bold",
    fontSize=24,
    leading=28,
    textColor=COLOR_PRIMARY,
    alignment=TA_CENTER,
    spaceAfter=20,
)

STYLE_SUBTITLE = ParagraphStyle(
    "ReportSubtitle",
    parent=_base_styles["Heading2"],
    fontName="Helvetica-Bold",
    fontSize=16,
    textColor=COLOR_SECONDARY,
    alignment=TA_LEFT,
    spaceAfter=20,
)

STYLE_SECTION = ParagraphStyle(
    "ReportSection",
    parent=_base_styles["Heading3"],
    fontName="Helvetica-Bold",
    fontSize=14,
    textColor=COLOR_SECTION,
    spaceBefore=20,
    spaceAfter=10,
)

STYLE_NOTICE = ParagraphStyle(
    "ReportNotice",
    parent=_base_styles["Normal"],
    fontName="Helvetica-Oblique",
    fontSize=12,
    textColor=COLOR_ALERT,
    alignment=TA_CENTER,
    spaceBefore=20,
)

STYLE_FOOTER = ParagraphStyle(
    "ReportFooter",
    parent=_base_styles["Normal"],
    fontSize=10,
    textColor=COLOR_MUTED,
    alignment=TA_CENTER,
    spaceBefore=30,
)

# ============================================================================
# TABLE STYLES
# ============================================================================

TABLE_STYLE_DEFAULT = [
    ("BACKGROUND", (0, 0), (-1, 0), COLOR_PRIMARY),
    ("TEXTCOLOR", (0, 0), (-1, 0), white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 11),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [white, COLOR_LIGHT]),
    ("GRID", (0, 0), (-1, -1), 0.5, COLOR_MUTED),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ("TOPPADDING", (0, 0), (-1, -1), 6),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
]
