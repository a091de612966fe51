"""
CopyMetrics — Answer-copy submission analytics.
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment before route modules read their settings
load_dotenv()

from core.filters import TIME_WINDOWS  # noqa: E402
from core.series import SUBJECT_PALETTE, TIME_SERIES_LIMIT  # noqa: E402
from routes.analyze import router as analyze_router  # noqa: E402
from routes.reports import router as reports_router  # noqa: E402
from routes.submissions import router as submissions_router  # noqa: E402

APP_NAME = os.getenv("APP_NAME", "CopyMetrics")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# The dashboard re-fetches submissions on this interval and recomputes analytics
AUTO_REFRESH_SECONDS = int(os.getenv("AUTO_REFRESH_SECONDS", "3"))
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=f"{APP_NAME} API",
    description="Submission analytics for evaluated answer copies.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze_router, prefix="/api/analyze", tags=["Analytics"])
app.include_router(submissions_router, prefix="/api/submissions", tags=["Submissions"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "app_name": APP_NAME}


@app.get("/api/config")
async def get_config():
    """Return dashboard configuration to the frontend."""
    return {
        "app_name": APP_NAME,
        "time_windows": list(TIME_WINDOWS.keys()),
        "subject_palette": SUBJECT_PALETTE,
        "time_series_limit": TIME_SERIES_LIMIT,
        "auto_refresh_seconds": AUTO_REFRESH_SECONDS,
    }
