"""
Report routes — PDF and Excel exports of submission analytics.
"""

import os
import uuid
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from core.analytics import compute_analytics
from core.records import frame_to_records
from core.filters import filter_submissions, resolve_now
from core.report_builder import generate_analytics_report_pdf, generate_excel_export

router = APIRouter()

APP_NAME = os.getenv("APP_NAME", "CopyMetrics")
REPORTS_DIR = Path(__file__).resolve().parent.parent / "reports"
REPORTS_DIR.mkdir(parents=True, exist_ok=True)


def _safe_unlink(path: str):
    """Best-effort file deletion after response is sent."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        pass


def _analytics_from_payload(payload: dict):
    data = payload.get("data")
    if data is None or not isinstance(data, list):
        raise HTTPException(400, "No data provided.")
    try:
        now = resolve_now(payload.get("now"))
        return data, now, compute_analytics(data, payload.get("filters"), now=now)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/analytics-pdf")
async def analytics_report_pdf(payload: dict):
    """Generate a performance analytics report PDF."""
    _, _, analytics = _analytics_from_payload(payload)
    title = str(payload.get("title") or APP_NAME)
    report_id = str(uuid.uuid4())[:8]
    output_path = REPORTS_DIR / f"analytics_report_{report_id}.pdf"

    generate_analytics_report_pdf(output_path=str(output_path), title=title, analytics=analytics)

    return FileResponse(
        str(output_path),
        media_type="application/pdf",
        filename=f"{APP_NAME}_Analytics_{report_id}.pdf",
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )


@router.post("/excel")
async def excel_export(payload: dict):
    """Export analytics tables plus the filtered submissions as an Excel workbook."""
    data, now, analytics = _analytics_from_payload(payload)
    filtered = filter_submissions(data, analytics["filters"], now=now)
    report_id = str(uuid.uuid4())[:8]
    output_path = REPORTS_DIR / f"analytics_export_{report_id}.xlsx"

    generate_excel_export(
        output_path=str(output_path),
        analytics=analytics,
        submissions=frame_to_records(filtered),
    )

    return FileResponse(
        str(output_path),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"{APP_NAME}_Export_{report_id}.xlsx",
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )
