"""
supabase_client.py — Submission rows from the hosted REST backend.

The browser app keeps its session as a JSON blob under
`supabase.auth.token`; the access token inside it is sent as a bearer token
together with the project's anon API key on every request. Without a token
there is nothing to fetch and the caller gets an empty list.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "supabase.auth.token"
SUBMISSIONS_PATH = "/rest/v1/submissions"


class SubmissionSourceError(Exception):
    """Raised when the submissions backend cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ── Session helpers ─────────────────────────────────────────────────

def parse_session(blob: Union[str, Dict[str, Any], None]) -> Optional[Dict[str, Any]]:
    """Return the `currentSession` dict from a stored session blob, or None."""
    if not blob:
        return None
    if isinstance(blob, str):
        try:
            blob = json.loads(blob)
        except json.JSONDecodeError:
            return None
    if not isinstance(blob, dict):
        return None
    session = blob.get("currentSession")
    return session if isinstance(session, dict) else None


def get_access_token(blob: Union[str, Dict[str, Any], None]) -> Optional[str]:
    session = parse_session(blob)
    if not session:
        return None
    return session.get("access_token") or None


def get_user_id(blob: Union[str, Dict[str, Any], None]) -> Optional[str]:
    session = parse_session(blob)
    if not session:
        return None
    user = session.get("user") or {}
    return user.get("id") or None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _error_message(res: httpx.Response, fallback: str) -> str:
    try:
        data = res.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or fallback)
    return fallback


def _json_body(res: httpx.Response, what: str) -> Any:
    try:
        return res.json()
    except ValueError as exc:
        logger.warning("%s returned a non-JSON body (status %s)", what, res.status_code)
        raise SubmissionSourceError(f"{what} returned an unreadable response.") from exc


# ── Data source ─────────────────────────────────────────────────────

class SubmissionSource:
    """Thin client for the `submissions` table of the REST backend."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls) -> "SubmissionSource":
        base_url = os.getenv("SUPABASE_URL", "").strip()
        api_key = os.getenv("SUPABASE_ANON_KEY", "").strip()
        if not base_url or not api_key:
            raise SubmissionSourceError("Missing SUPABASE_URL or SUPABASE_ANON_KEY.")
        timeout = float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "10"))
        return cls(base_url, api_key, timeout=timeout)

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def fetch_submissions(self, token: Optional[str]) -> List[Dict[str, Any]]:
        """All submissions visible to the token, newest first."""
        if not token:
            return []

        try:
            with self._client() as client:
                res = client.get(
                    SUBMISSIONS_PATH,
                    params={"select": "*", "order": "created_at.desc"},
                    headers=self._headers(token),
                )
        except httpx.HTTPError as exc:
            logger.warning("Submissions request failed: %s", exc)
            raise SubmissionSourceError(f"Error fetching submissions: {exc}") from exc

        if res.is_error:
            logger.warning("Submissions request returned %s", res.status_code)
            raise SubmissionSourceError(
                _error_message(res, "Failed to fetch submissions"),
                status_code=res.status_code,
            )

        rows = _json_body(res, "Submissions request")
        if not isinstance(rows, list):
            raise SubmissionSourceError("Submissions request returned an unexpected payload.")
        logger.debug("Fetched %d submissions", len(rows))
        return rows

    def create_submission(
        self,
        token: Optional[str],
        user_id: Optional[str],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Insert a submission owned by `user_id` and return the stored row."""
        if not token or not user_id:
            raise SubmissionSourceError("Not authenticated", status_code=401)

        headers = self._headers(token)
        headers["Prefer"] = "return=representation"
        try:
            with self._client() as client:
                res = client.post(
                    SUBMISSIONS_PATH,
                    json={**data, "user_id": user_id},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.warning("Create submission request failed: %s", exc)
            raise SubmissionSourceError(f"Error creating submission: {exc}") from exc

        if res.is_error:
            raise SubmissionSourceError(
                _error_message(res, "Failed to create submission"),
                status_code=res.status_code,
            )

        created = _json_body(res, "Create submission request")
        if isinstance(created, list):
            if not created:
                raise SubmissionSourceError("Backend returned no row for the new submission.")
            return created[0]
        return created
