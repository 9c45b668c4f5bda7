# src/nacsim_core/export/pdf_export.py
import logging
from pathlib import Path
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.doctemplate import LayoutError

from .. import constants
from ..errors import EmissionError
from .context import ExportContext
from .tables import DEVICE_TABLE_HEADERS, device_row, issue_rows, parameter_rows, summary_rows

logger = logging.getLogger(__name__)

_HEADER_BG = colors.HexColor("#f2f2f2")
_LOW_VOLTAGE_BG = colors.HexColor("#f8d7da")

# The built-in Helvetica has no arrow glyph.
PDF_LOCATION_SEPARATOR = " -> "


def pdf_text(text: str) -> str:
    """Text as it is drawn with the built-in fonts."""
    return text.replace(constants.LOCATION_SEPARATOR, PDF_LOCATION_SEPARATOR).replace("\u2192", "->")


def _p(text: str, style) -> Paragraph:
    return Paragraph(escape(pdf_text(text)), style)


def _kv_table(rows: List[List[str]]) -> Table:
    t = Table([[pdf_text(cell) for cell in row] for row in rows], colWidths=[8.0 * cm, 8.0 * cm])
    t.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("BACKGROUND", (0, 0), (0, -1), _HEADER_BG),
                ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return t


def _device_table(context: ExportContext, body_style) -> Table:
    # Wrap the free-text columns so long names and locations do not overflow.
    rows = [[_p(h, body_style) for h in DEVICE_TABLE_HEADERS]]
    for record in context.records:
        row: List = device_row(record)
        for i in (1, 2, 3):
            row[i] = _p(row[i], body_style)
        rows.append(row)

    widths = [1.0, 4.3, 3.6, 4.6, 1.8, 1.8, 2.0, 2.0, 1.8, 1.6, 2.2]
    t = Table(rows, colWidths=[w * cm for w in widths], repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_BG),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("ALIGN", (4, 1), (-2, -1), "RIGHT"),
    ]
    for i, record in enumerate(context.records, start=1):
        if record.status == constants.STATUS_LOW_VOLTAGE:
            style.append(("BACKGROUND", (0, i), (-1, i), _LOW_VOLTAGE_BG))
    t.setStyle(TableStyle(style))
    return t


def _section(title: str, story, styles):
    story.append(_p(title, styles["Heading3"]))
    story.append(Spacer(1, 0.2 * cm))


def write_pdf_report(context: ExportContext, path: Path) -> None:
    """Writes a paginated report: parameters, summary, findings and the device table."""
    styles = getSampleStyleSheet()
    body = styles["BodyText"]
    small = styles["BodyText"].clone("Small", fontSize=7, leading=8)

    story = []
    story.append(_p(f"Circuit Analysis Report: {context.circuit_name}", styles["Title"]))
    story.append(_p(f"Project: {context.project_name}", body))
    story.append(_p(f"Generated: {context.exported_at:%Y-%m-%d %H:%M} by {context.exported_by}", body))
    story.append(Spacer(1, 0.4 * cm))

    _section("Parameters", story, styles)
    story.append(_kv_table(parameter_rows(context.parameters)))
    story.append(Spacer(1, 0.4 * cm))

    _section("Summary", story, styles)
    story.append(_kv_table(summary_rows(context.report)))
    story.append(Spacer(1, 0.4 * cm))

    _section("Validation", story, styles)
    findings = issue_rows(context.report)
    if not findings:
        story.append(_p("No issues found.", body))
    for level, message in findings:
        story.append(_p(f"• {level}: {message}", body))
    story.append(Spacer(1, 0.4 * cm))

    _section("Device Details", story, styles)
    story.append(_device_table(context, small))

    try:
        doc = SimpleDocTemplate(
            str(path),
            pagesize=landscape(A4),
            leftMargin=1.5 * cm,
            rightMargin=1.5 * cm,
            topMargin=1.5 * cm,
            bottomMargin=1.5 * cm,
            title=f"Circuit Analysis Report: {context.circuit_name}",
            author=context.exported_by,
        )
        doc.build(story)
    except (OSError, LayoutError) as e:
        raise EmissionError("pdf", str(e), path) from e
    logger.debug(f"Wrote PDF report to '{path}'.")
