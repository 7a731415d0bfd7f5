"""Supabase REST and Storage client implementation with error handling."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests
from requests import Response

from .settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

JsonDict = Dict[str, Any]

EXPENSES_TABLE = "expenses"
CATEGORIES_TABLE = "categories"


class SupabaseAPIError(RuntimeError):
    """Raised when Supabase API operations fail."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, response_text: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


def _rest_url(settings: Settings, table: str) -> str:
    return f"{settings.supabase_url}/rest/v1/{table}"


def _storage_url(settings: Settings, *parts: str) -> str:
    suffix = "/".join(part.strip("/") for part in parts)
    return f"{settings.supabase_url}/storage/v1/{suffix}"


def _headers(settings: Settings, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    headers = {
        "apikey": settings.supabase_key,
        "Authorization": f"Bearer {settings.supabase_key}",
        "Content-Type": "application/json",
    }
    if extra:
        headers.update(extra)
    return headers


def _handle_response(response: Response) -> Any:
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        LOGGER.error(
            "Supabase API error: status=%s body=%s", response.status_code, response.text.strip()
        )
        raise SupabaseAPIError(
            "supabase_api_error",
            status_code=response.status_code,
            response_text=response.text,
        ) from exc
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise SupabaseAPIError("invalid_json_response", response_text=response.text) from exc


def _request(
    method: str,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    json_body: Any = None,
    data: Optional[bytes] = None,
    headers: Optional[Mapping[str, str]] = None,
    settings: Settings,
    timeout: int = 30,
) -> Any:
    try:
        response = requests.request(
            method,
            url,
            headers=_headers(settings, headers),
            params=params,
            json=json_body,
            data=data,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        LOGGER.error("Supabase request failure: %s", exc)
        raise SupabaseAPIError("request_failed") from exc
    return _handle_response(response)


def _first_row(rows: Any) -> JsonDict:
    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0]
    if isinstance(rows, dict):
        return rows
    raise SupabaseAPIError("missing_inserted_row")


def insert_expense(payload: Mapping[str, Any], *, settings: Optional[Settings] = None) -> JsonDict:
    settings = settings or get_settings()
    rows = _request(
        "POST",
        _rest_url(settings, EXPENSES_TABLE),
        json_body=dict(payload),
        headers={"Prefer": "return=representation"},
        settings=settings,
    )
    return _first_row(rows)


def query_expenses(user_id: str, *, settings: Optional[Settings] = None) -> List[JsonDict]:
    """Return the user's expenses, newest first."""

    settings = settings or get_settings()
    params = {
        "select": "*",
        "user_id": f"eq.{user_id}",
        "order": "date.desc",
    }
    rows = _request("GET", _rest_url(settings, EXPENSES_TABLE), params=params, settings=settings)
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


def delete_expense(expense_id: str, *, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    _request(
        "DELETE",
        _rest_url(settings, EXPENSES_TABLE),
        params={"id": f"eq.{expense_id}"},
        settings=settings,
    )


def upload_file(
    path: str,
    content: bytes,
    content_type: str,
    *,
    settings: Optional[Settings] = None,
) -> JsonDict:
    settings = settings or get_settings()
    url = _storage_url(settings, "object", settings.receipts_bucket, quote(path))
    response = _request(
        "POST",
        url,
        data=content,
        headers={"Content-Type": content_type},
        settings=settings,
        timeout=60,
    )
    return response if isinstance(response, dict) else {}


def get_public_url(path: str, *, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return _storage_url(settings, "object", "public", settings.receipts_bucket, quote(path))


def list_categories(*, settings: Optional[Settings] = None) -> List[JsonDict]:
    settings = settings or get_settings()
    params = {"select": "*", "order": "name.asc"}
    rows = _request("GET", _rest_url(settings, CATEGORIES_TABLE), params=params, settings=settings)
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


__all__ = [
    "SupabaseAPIError",
    "delete_expense",
    "get_public_url",
    "insert_expense",
    "list_categories",
    "query_expenses",
    "upload_file",
]
