"""
report_builder.py — PDF and Excel exports of submission analytics.

Generates:
- Analytics Report PDF (summary table, trend chart, subject donut,
  score-range bars, per-subject bars, subject table)
- Excel Export (summary, subjects, score ranges, trend, optional raw rows)

Both take the dict returned by `core.analytics.compute_analytics`.
"""

import io
from datetime import datetime
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm, mm
from reportlab.platypus import (
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from core.filters import ALL


# ── Colour palette ──────────────────────────────────────────────────

BRAND_DARK = colors.HexColor("#1e1b4b")
BRAND_ACCENT = colors.HexColor("#4f46e5")
LIGHT_GREY = colors.HexColor("#f5f5f5")
WHITE = colors.white

TIME_WINDOW_LABELS = {
    "all": "All time",
    "last30Days": "Last 30 days",
    "last7Days": "Last 7 days",
}


# ── Helpers ─────────────────────────────────────────────────────────

def _footer(canvas, doc, title: str):
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawString(2 * cm, 1.2 * cm, f"{title} - Generated {datetime.now().strftime('%d %B %Y, %H:%M')}")
    canvas.drawRightString(A4[0] - 2 * cm, 1.2 * cm, f"Page {doc.page}")
    canvas.restoreState()


def _chart_to_image(fig, width=14 * cm, height=8 * cm) -> Image:
    """Convert a matplotlib figure to a ReportLab Image."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return Image(buf, width=width, height=height)


def _filters_text(filters: Dict[str, str]) -> str:
    window = TIME_WINDOW_LABELS.get(filters.get("time_window", ALL), filters.get("time_window", ALL))
    subject = filters.get("subject", ALL)
    subject_text = "All subjects" if subject == ALL else subject
    return f"{window} / {subject_text}"


# ── Charts ──────────────────────────────────────────────────────────

def _trend_chart(points: List[Dict[str, Any]]) -> Optional[Image]:
    """Line chart of the recent scored submissions."""
    if not points:
        return None

    xs = [p["x"] for p in points]
    ys = [p["percent"] for p in points]
    fig, ax = plt.subplots(figsize=(7, 3.5))
    ax.plot(xs, ys, marker="o", linewidth=2.2, color="#4f46e5")
    ax.fill_between(xs, ys, alpha=0.12, color="#4f46e5")
    for x, y in zip(xs, ys):
        ax.text(x, y + 2, f"{y}%", ha="center", fontsize=7)
    ax.set_xticks(xs)
    ax.set_xticklabels([p["date_label"] for p in points], rotation=35, fontsize=7)
    ax.set_xlim(-5, 105)
    ax.set_ylim(0, 105)
    ax.set_ylabel("Score (%)")
    ax.set_title("Recent Performance Trend", fontsize=12, fontweight="bold", pad=12)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    fig.tight_layout()
    return _chart_to_image(fig, width=14 * cm, height=7 * cm)


def _subject_donut_chart(segments: List[Dict[str, Any]]) -> Optional[Image]:
    if not segments:
        return None
    fig, ax = plt.subplots(figsize=(4.5, 4.0))
    wedges, _ = ax.pie(
        [s["count"] for s in segments],
        colors=[s["color"] for s in segments],
        startangle=90,
        counterclock=False,
        wedgeprops={"width": 0.42},
    )
    ax.legend(
        wedges,
        [f"{s['subject']} ({s['percent_of_total']}%)" for s in segments],
        loc="lower center", bbox_to_anchor=(0.5, -0.2), ncol=2, fontsize=7,
    )
    ax.set_title("Submissions by Subject")
    fig.tight_layout()
    return _chart_to_image(fig, width=7 * cm, height=7 * cm)


def _histogram_chart(bars: List[Dict[str, Any]]) -> Optional[Image]:
    if sum(b["count"] for b in bars) == 0:
        return None
    fig, ax = plt.subplots(figsize=(5.8, 3.5))
    drawn = ax.bar([b["range"] for b in bars], [b["count"] for b in bars], color=[b["color"] for b in bars])
    for rect, b in zip(drawn, bars):
        ax.text(rect.get_x() + rect.get_width() / 2, rect.get_height() + 0.1,
                f"{b['percent_of_scored']}%", ha="center", fontsize=8)
    ax.set_title("Score Ranges")
    ax.set_ylabel("Submissions")
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    fig.tight_layout()
    return _chart_to_image(fig, width=8 * cm, height=6.5 * cm)


def _performance_chart(bars: List[Dict[str, Any]]) -> Optional[Image]:
    if not bars:
        return None
    fig, ax = plt.subplots(figsize=(8, 4))
    names = [b["subject"] for b in bars]
    values = [b["average_percent"] for b in bars]
    drawn = ax.bar(names, values, color=[b["color"] for b in bars], edgecolor="white", linewidth=0.5)
    for rect, val in zip(drawn, values):
        ax.text(rect.get_x() + rect.get_width() / 2, rect.get_height() + 1,
                f"{val}%", ha="center", va="bottom", fontsize=8, fontweight="bold")
    ax.set_ylabel("Average Score (%)", fontsize=10)
    ax.set_title("Subject Performance", fontsize=12, fontweight="bold", pad=12)
    ax.set_ylim(0, 105)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.tick_params(axis="x", rotation=30)
    fig.tight_layout()
    return _chart_to_image(fig)


# ── PDF Helpers ─────────────────────────────────────────────────────

def _styles():
    ss = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "CustomTitle", parent=ss["Title"],
            fontSize=24, leading=30, textColor=BRAND_DARK,
            spaceAfter=4 * mm,
        ),
        "subtitle": ParagraphStyle(
            "CustomSubtitle", parent=ss["Normal"],
            fontSize=12, leading=16, textColor=BRAND_ACCENT,
            spaceAfter=4 * mm,
        ),
        "heading": ParagraphStyle(
            "CustomHeading", parent=ss["Heading2"],
            fontSize=14, leading=18, textColor=BRAND_DARK,
            spaceBefore=6 * mm, spaceAfter=3 * mm,
        ),
        "body": ParagraphStyle(
            "CustomBody", parent=ss["Normal"],
            fontSize=10, leading=14, textColor=colors.black,
            spaceAfter=3 * mm,
        ),
    }


def _make_table(data: List[List], col_widths=None, header_color=BRAND_DARK):
    style_cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), WHITE),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("FONTSIZE", (0, 1), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [WHITE, LIGHT_GREY]),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    t = Table(data, colWidths=col_widths, repeatRows=1)
    t.setStyle(TableStyle(style_cmds))
    return t


def _summary_rows(summary: Dict[str, Any]) -> List[List[str]]:
    return [
        ["Metric", "Value"],
        ["Total Submissions", str(summary["total_count"])],
        ["Evaluated", str(summary["evaluated_count"])],
        ["Pending", str(summary["pending_count"])],
        ["Average Score", f"{summary['average_percent']}%"],
        ["Highest Score", f"{summary['highest_percent']}%"],
        ["Lowest Score", f"{summary['lowest_percent']}%"],
    ]


# ═══════════════════════════════════════════════════════════════════
# 1. ANALYTICS REPORT PDF
# ═══════════════════════════════════════════════════════════════════

def generate_analytics_report_pdf(output_path: str, title: str, analytics: Dict[str, Any]):
    """Generate a one-user performance report PDF from computed analytics."""
    st = _styles()
    summary = analytics["summary"]
    charts = analytics.get("charts", {})
    story = []

    story.append(Paragraph(title, st["title"]))
    story.append(Paragraph(f"Performance Analytics - {_filters_text(analytics.get('filters', {}))}", st["subtitle"]))
    story.append(Paragraph(datetime.now().strftime("%d %B %Y"), st["body"]))

    story.append(Paragraph("1) Snapshot", st["heading"]))
    story.append(_make_table(_summary_rows(summary), col_widths=[7.5 * cm, 6.5 * cm]))

    if summary["total_count"] == 0:
        story.append(Spacer(1, 5 * mm))
        story.append(Paragraph("No submissions match the selected filters.", st["body"]))

    trend = _trend_chart(analytics.get("time_series", []))
    if trend:
        story.append(Paragraph("2) Recent Trend", st["heading"]))
        story.append(trend)

    donut = _subject_donut_chart(charts.get("donut", []))
    histogram = _histogram_chart(charts.get("histogram", []))
    if donut or histogram:
        story.append(Paragraph("3) Distribution", st["heading"]))
        row, widths = [], []
        if donut:
            row.append(donut)
            widths.append(7.5 * cm)
        if histogram:
            row.append(histogram)
            widths.append(8.5 * cm)
        visual_tbl = Table([row], colWidths=widths)
        visual_tbl.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        story.append(visual_tbl)

    performance = _performance_chart(charts.get("performance", []))
    if performance:
        story.append(Paragraph("4) Subject Performance", st["heading"]))
        story.append(performance)

    distribution = summary.get("subject_distribution", [])
    if distribution:
        story.append(Paragraph("5) Subject Breakdown", st["heading"]))
        table = [["Subject", "Submissions", "Share"]]
        for d in distribution:
            table.append([d["subject"], str(d["count"]), f"{d['percent_of_total']}%"])
        story.append(_make_table(table, col_widths=[8 * cm, 3.5 * cm, 3.5 * cm]))

    doc = SimpleDocTemplate(
        output_path,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2.5 * cm,
    )
    doc.build(
        story,
        onFirstPage=lambda c, d: _footer(c, d, title),
        onLaterPages=lambda c, d: _footer(c, d, title),
    )


# ═══════════════════════════════════════════════════════════════════
# 2. EXCEL EXPORT
# ═══════════════════════════════════════════════════════════════════

def generate_excel_export(
    output_path: str,
    analytics: Dict[str, Any],
    submissions: Optional[List[Dict[str, Any]]] = None,
):
    """Export analytics tables (and optionally the raw rows) to a styled workbook."""
    summary = analytics["summary"]

    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="1e1b4b", end_color="1e1b4b", fill_type="solid")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )

    def _fill_sheet(ws, rows: List[List[Any]], tab_color: str):
        ws.sheet_properties.tabColor = tab_color
        for row in rows:
            ws.append(row)
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")
        for row in ws.iter_rows(min_row=1, max_row=ws.max_row):
            for cell in row:
                cell.border = thin_border
        ws.freeze_panes = "A2"
        for col_cells in ws.columns:
            max_len = max(len(str(cell.value or "")) for cell in col_cells)
            ws.column_dimensions[col_cells[0].column_letter].width = min(max_len + 4, 40)

    wb = Workbook()

    ws_summary = wb.active
    ws_summary.title = "Summary"
    summary_rows: List[List[Any]] = [list(r) for r in _summary_rows(summary)]
    summary_rows.append(["Filters", _filters_text(analytics.get("filters", {}))])
    _fill_sheet(ws_summary, summary_rows, "1e1b4b")

    subject_rows: List[List[Any]] = [["Subject", "Submissions", "Share %", "Scored", "Average %"]]
    performance = {p["subject"]: p for p in summary.get("per_subject_performance", [])}
    for d in summary.get("subject_distribution", []):
        perf = performance.get(d["subject"], {})
        subject_rows.append([
            d["subject"], d["count"], d["percent_of_total"],
            perf.get("count"), perf.get("average_percent"),
        ])
    _fill_sheet(wb.create_sheet("Subjects"), subject_rows, "6366f1")

    range_rows: List[List[Any]] = [["Range", "Count", "Share %"]]
    for label, bucket in summary.get("score_histogram", {}).items():
        range_rows.append([label, bucket["count"], bucket["percent_of_scored"]])
    _fill_sheet(wb.create_sheet("Score Ranges"), range_rows, "10b981")

    trend_rows: List[List[Any]] = [["Date", "Subject", "Score %"]]
    for p in analytics.get("time_series", []):
        trend_rows.append([p["date_label"], p["subject"], p["percent"]])
    _fill_sheet(wb.create_sheet("Trend"), trend_rows, "f59e0b")

    if submissions:
        columns = list(submissions[0].keys())
        rows: List[List[Any]] = [columns]
        for s in submissions:
            rows.append([s.get(c) if not isinstance(s.get(c), (dict, list)) else str(s.get(c)) for c in columns])
        _fill_sheet(wb.create_sheet("Submissions"), rows, "ef4444")

    wb.save(output_path)
