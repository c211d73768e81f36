"""Client utilities for the Supabase PostgREST API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class RecordBackendError(RuntimeError):
    """Raised when the backend returns a non-successful or unreadable response."""


def _headers(api_key: str) -> Dict[str, str]:
    return {
        "apikey": api_key,
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }


def fetch_table(base_url: str, table: str, api_key: str, *, order: str = "name.asc", timeout: int = 10) -> List[Dict[str, Any]]:
    if not base_url:
        raise RecordBackendError("SUPABASE_URL is not configured")

    params = {"select": "*", "order": order}
    response = _SESSION.get(f"{base_url}/rest/v1/{table}", params=params, headers=_headers(api_key), timeout=timeout)
    if response.status_code >= 400:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("message") if isinstance(payload, dict) else None
        logger.error("fetch_table failed: status=%s, message=%s", response.status_code, message)
        raise RecordBackendError(message or f"HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise RecordBackendError("Backend returned a non-JSON payload") from exc
    if not isinstance(payload, list):
        logger.error("fetch_table returned %s instead of a list", type(payload).__name__)
        raise RecordBackendError("Backend returned an unexpected payload")
    return payload
