"""
Submission routes — proxy the hosted submissions table and analyse it.

The caller's bearer token is forwarded as-is. A request without a token gets
an empty list (and all-zero analytics) rather than an error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from core.analytics import compute_analytics
from core.filters import ALL
from core.supabase_client import SubmissionSource, SubmissionSourceError, bearer_token

logger = logging.getLogger(__name__)

router = APIRouter()


def get_submission_source() -> SubmissionSource:
    try:
        return SubmissionSource.from_env()
    except SubmissionSourceError as e:
        raise HTTPException(503, e.message)


def _upstream_error(e: SubmissionSourceError) -> HTTPException:
    if e.status_code in (401, 403):
        return HTTPException(e.status_code, e.message)
    return HTTPException(502, e.message)


@router.get("")
def list_submissions(
    authorization: Optional[str] = Header(None),
    source: SubmissionSource = Depends(get_submission_source),
):
    """The caller's submissions, newest first."""
    try:
        return source.fetch_submissions(bearer_token(authorization))
    except SubmissionSourceError as e:
        raise _upstream_error(e)


@router.get("/analytics")
def submission_analytics(
    time_window: str = ALL,
    subject: str = ALL,
    authorization: Optional[str] = Header(None),
    source: SubmissionSource = Depends(get_submission_source),
):
    """Dashboard analytics over the caller's own submissions."""
    try:
        rows = source.fetch_submissions(bearer_token(authorization))
    except SubmissionSourceError as e:
        raise _upstream_error(e)

    try:
        return compute_analytics(rows, {"time_window": time_window, "subject": subject})
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("")
def create_submission(
    payload: dict,
    authorization: Optional[str] = Header(None),
    source: SubmissionSource = Depends(get_submission_source),
):
    """
    Create a submission for the authenticated user.
    Expects: { "user_id": "...", "paper_type": "...", "question_number": "...", "file_url": "..." }
    """
    data = dict(payload)
    user_id = data.pop("user_id", None)
    try:
        created = source.create_submission(bearer_token(authorization), user_id, data)
    except SubmissionSourceError as e:
        raise _upstream_error(e)

    logger.info("Created submission %s", created.get("id"))
    return created
