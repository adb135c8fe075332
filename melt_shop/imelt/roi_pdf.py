"""
Server-rendered ROI report (PDF): executive summary, performance table,
monthly savings line items, payback and assumptions on one A4 page.
"""

import uuid
from datetime import datetime, timezone
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .roi import DEFAULT_INVESTMENT_EUR, Baseline, Current, Prices, compute_payback, compute_roi

DAYS_PER_MONTH = 30

HEADER_BG = colors.HexColor("#374151")
ROW_BG = colors.HexColor("#f9fafb")
GRID = colors.HexColor("#e5e7eb")
GOOD = colors.HexColor("#059669")
BAD = colors.HexColor("#dc2626")


def _eur(value: float) -> str:
    return f"€{value:,.0f}"


def _table(rows, col_widths, extra_styles=()):
    table = Table(rows, colWidths=col_widths, hAlign="LEFT")
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [ROW_BG, colors.white]),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        *extra_styles,
    ]))
    return table


def render_roi_pdf(baseline: Baseline, current: Current, prices: Prices,
                   heat_id: Optional[int] = None, operator: Optional[str] = None,
                   investment: float = DEFAULT_INVESTMENT_EUR,
                   report_id: Optional[str] = None) -> bytes:
    roi = compute_roi(baseline, current, prices)
    payback = compute_payback(roi, investment)
    monthly_heats = baseline.heats_per_day * DAYS_PER_MONTH
    generated = datetime.now(timezone.utc)
    report_id = report_id or f"ROI-{uuid.uuid4().hex[:8].upper()}"

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title="I-MELT ROI Analysis Report",
        author="I-MELT",
    )
    styles = getSampleStyleSheet()
    muted = ParagraphStyle("Muted", parent=styles["Normal"], fontSize=9, textColor=colors.HexColor("#6b7280"))
    highlight = ParagraphStyle("Highlight", parent=styles["Normal"], fontSize=11, textColor=GOOD)

    subject = f"Heat #{heat_id}" if heat_id is not None else "Melt shop"
    story = [
        Paragraph("I-MELT", styles["Title"]),
        Paragraph("ROI Analysis Report", styles["Heading2"]),
        Paragraph(f"{subject} | Generated {generated.date().isoformat()}", muted),
        Spacer(1, 6 * mm),

        Paragraph("Executive Summary", styles["Heading3"]),
        Paragraph(f"Monthly savings: <b>{_eur(roi.per_month)}</b>", styles["Normal"]),
        Paragraph(f"Annual projection: <b>{_eur(roi.per_month * 12)}</b>", styles["Normal"]),
        Paragraph(f"Per heat: <b>€{roi.per_heat:,.2f}</b>", styles["Normal"]),
    ]
    if payback.months is not None:
        story.append(Paragraph(f"Payback period: {payback.months:g} months ({payback.description})", highlight))
    else:
        story.append(Paragraph(payback.description, highlight))
    if operator:
        story.append(Paragraph(f"Operated by {escape(operator)}", muted))
    story.append(Spacer(1, 5 * mm))

    details = roi.details
    performance = [
        ["Metric", "Baseline", "Optimized", "Improvement"],
        ["Energy consumption", f"{baseline.kwh_per_t:g} kWh/t", f"{current.kwh_per_t:g} kWh/t",
         f"{details.energy_delta:.1f} kWh/t"],
        ["Heat duration", f"{baseline.min_per_heat:g} min", f"{current.min_per_heat:g} min",
         f"{details.time_delta:.1f} min"],
        ["Electrode consumption", f"{baseline.electrode_kg_per_heat:g} kg/heat",
         f"{current.electrode_kg_per_heat:g} kg/heat", f"{details.electrode_delta:.1f} kg/heat"],
    ]
    deltas = [details.energy_delta, details.time_delta, details.electrode_delta]
    colored = [("TEXTCOLOR", (3, row), (3, row), GOOD if delta > 0 else BAD)
               for row, delta in enumerate(deltas, start=1)]
    story += [
        Paragraph("Performance Improvements", styles["Heading3"]),
        _table(performance, [55 * mm, 38 * mm, 38 * mm, 38 * mm], colored),
        Spacer(1, 5 * mm),
    ]

    breakdown = roi.breakdown
    line_items = [
        ["Line item", "Per heat", "Per month"],
        ["Energy", f"€{breakdown.energy_saving:,.2f}", _eur(breakdown.energy_saving * monthly_heats)],
        ["Production time", f"€{breakdown.time_saving:,.2f}", _eur(breakdown.time_saving * monthly_heats)],
        ["Electrodes", f"€{breakdown.electrode_saving:,.2f}", _eur(breakdown.electrode_saving * monthly_heats)],
        ["Total", f"€{roi.per_heat:,.2f}", _eur(roi.per_month)],
    ]
    story += [
        Paragraph("Savings Breakdown", styles["Heading3"]),
        _table(line_items, [55 * mm, 45 * mm, 45 * mm],
               [("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold")]),
        Spacer(1, 5 * mm),
    ]

    payback_rows = [
        ["System investment", "Monthly savings", "Payback"],
        [_eur(payback.investment_estimate), _eur(roi.per_month),
         f"{payback.months:g} months" if payback.months is not None else "n/a"],
    ]
    story += [
        Paragraph("Investment and Payback", styles["Heading3"]),
        _table(payback_rows, [55 * mm, 45 * mm, 45 * mm]),
        Spacer(1, 5 * mm),

        Paragraph("Assumptions", styles["Heading3"]),
        Paragraph(f"{baseline.heats_per_day:g} heats per day, {baseline.mass_t:g} t per heat, "
                  f"{DAYS_PER_MONTH} production days per month.", styles["Normal"]),
        Paragraph(f"Electricity €{prices.kwh}/kWh, electrodes €{prices.electrode}/kg, "
                  f"production value €{prices.prod_value_per_min}/min.", styles["Normal"]),
        Paragraph("Negative improvements count as zero savings.", styles["Normal"]),
        Spacer(1, 8 * mm),
        Paragraph(f"Report ID: {report_id} | Generated by I-MELT AI Optimization System", muted),
    ]

    doc.build(story)
    return buffer.getvalue()
