"""
Synchronous HTTP client for the BYC assessment backend API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging

import httpx
import streamlit as st

logger = logging.getLogger(__name__)

_SESSION = "/api/v1/interview/session"


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the UI to display appropriate error messages.
    """

    def __init__(self, message: str, category: str = "unknown", status_code: int | None = None) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    All methods return parsed JSON dicts or raise ``APIError`` with
    user-friendly messages for display in the UI.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the FastAPI backend.
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Args:
            method: HTTP method name ("get", "post", "delete").
            path: API endpoint path (e.g. "/api/v1/interview/session").
            **kwargs: Passed through to httpx (json, params, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Backend server is not running. "
                "Start it with: `uvicorn byc.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The server may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("detail", exc.response.text)
            except Exception:
                detail = exc.response.text or str(exc)
            raise APIError(
                str(detail), category="http", status_code=exc.response.status_code
            ) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- interview --

    def list_questions(self) -> list[dict]:
        return self._request("get", "/api/v1/interview/questions").json()

    def start_session(self, provider: str | None = None) -> dict:
        body = {"provider": provider} if provider else None
        return self._request("post", _SESSION, json=body).json()

    def get_session(self) -> dict | None:
        """Return the active session snapshot, or None when no session exists."""
        try:
            return self._request("get", _SESSION).json()
        except APIError as exc:
            if exc.status_code == 404:
                return None
            raise

    def end_session(self) -> None:
        self._request("delete", _SESSION)

    def start_countdown(self) -> dict:
        return self._request("post", f"{_SESSION}/countdown").json()

    def stop_recording(self) -> dict:
        return self._request("post", f"{_SESSION}/stop").json()

    def review(self) -> dict:
        return self._request("post", f"{_SESSION}/review").json()

    def re_record(self) -> dict:
        return self._request("post", f"{_SESSION}/rerecord").json()

    def advance(self) -> dict:
        return self._request("post", f"{_SESSION}/advance").json()

    def submit(self) -> dict:
        return self._request("post", f"{_SESSION}/submit").json()

    def download_artifact(self, question_index: int, kind: str) -> bytes | None:
        """Fetch one track of a stored recording. Returns None if missing."""
        try:
            resp = self._request("get", f"{_SESSION}/artifacts/{question_index}/{kind}")
            return resp.content
        except APIError as exc:
            if exc.status_code == 404:
                return None
            raise

    def preview_frame(self) -> bytes | None:
        try:
            return self._request("get", f"{_SESSION}/preview").content
        except APIError as exc:
            if exc.status_code == 404:
                return None
            raise

    # -- progress --

    def get_progress(self) -> dict:
        return self._request("get", "/api/v1/progress").json()


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url.

    Uses Streamlit's ``cache_resource`` to persist the client across reruns.
    When the base URL changes (e.g. user updates sidebar), a new client
    is created automatically because the cache key includes the parameter.
    """
    return APIClient(base_url=base_url)
