"""FastAPI router definitions for the expense scanner service."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from . import supabase_client
from .expenses import SORT_KEYS, expense_stats, filter_expenses, prefill_from_receipt, receipt_object_path
from .ocr_extract import ScannedReceipt, parse_receipt_text, scan_receipt
from .settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Expense Scanner Service")

MAX_UPLOAD_SIZE = 15 * 1024 * 1024
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
}


class ScanTextRequest(BaseModel):
    text: str = ""


class ScanResponse(BaseModel):
    receipt: Dict[str, Any]
    draft: Dict[str, Any]


class ExpenseResponse(BaseModel):
    expense: Dict[str, Any]


class ExpenseListResponse(BaseModel):
    expenses: List[Dict[str, Any]]


class ExpenseStatsResponse(BaseModel):
    stats: Dict[str, Any]


class CategoryListResponse(BaseModel):
    categories: List[Dict[str, Any]]


def _scan_response(receipt: ScannedReceipt) -> ScanResponse:
    draft = prefill_from_receipt(receipt)
    return ScanResponse(receipt=receipt.to_dict(), draft=draft.to_dict())


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty_file")
    if len(data) > MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="file_too_large")
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="unsupported_mime")
    return data


def _parse_amount(raw: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_amount") from exc
    # nan and inf cannot be encoded as JSON for the backend
    if not math.isfinite(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_amount")
    return value


def _upload_receipt(user_id: str, file: UploadFile, data: bytes, settings: Settings) -> Optional[str]:
    path = receipt_object_path(user_id, file.filename or "")
    try:
        supabase_client.upload_file(path, data, file.content_type or "application/octet-stream", settings=settings)
    except supabase_client.SupabaseAPIError as exc:
        # the expense is still saved, just without an image link
        LOGGER.warning("Receipt upload failed for %s: %s", path, exc)
        return None
    return supabase_client.get_public_url(path, settings=settings)


@app.post("/scan", response_model=ScanResponse)
async def scan(
    settings: Settings = Depends(get_settings),
    file: UploadFile = File(...),
) -> ScanResponse:
    data = await _read_upload(file)
    receipt = scan_receipt(data, language=settings.ocr_language)
    LOGGER.info("Scanned receipt merchant=%r amount=%s", receipt.merchant, receipt.amount)
    return _scan_response(receipt)


@app.post("/scan/text", response_model=ScanResponse)
async def scan_text(payload: ScanTextRequest) -> ScanResponse:
    return _scan_response(parse_receipt_text(payload.text))


@app.post("/expenses", response_model=ExpenseResponse)
async def create_expense(
    settings: Settings = Depends(get_settings),
    user_id: str = Form(...),
    title: str = Form(...),
    amount: str = Form(...),
    category: str = Form(...),
    date: str = Form(...),
    description: str = Form(""),
    receipt: Optional[UploadFile] = File(None),
) -> ExpenseResponse:
    if not title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing_title")
    if category not in settings.categories:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="unknown_category")
    amount_value = _parse_amount(amount)

    receipt_url: Optional[str] = None
    receipt_data: Optional[Dict[str, Any]] = None
    if receipt is not None:
        data = await _read_upload(receipt)
        receipt_data = scan_receipt(data, language=settings.ocr_language).to_dict()
        receipt_url = _upload_receipt(user_id, receipt, data, settings)

    payload = {
        "user_id": user_id,
        "title": title,
        "amount": amount_value,
        "category": category,
        "date": date,
        "description": description,
        "receipt_url": receipt_url,
        "receipt_data": receipt_data,
    }
    try:
        created = supabase_client.insert_expense(payload, settings=settings)
    except supabase_client.SupabaseAPIError as exc:
        LOGGER.error("Failed to insert expense: %s", exc)
        raise HTTPException(status_code=status.HTTP_424_FAILED_DEPENDENCY, detail="expense_insert_failed") from exc
    return ExpenseResponse(expense=created)


def _load_expenses(user_id: str, settings: Settings) -> List[Dict[str, Any]]:
    try:
        return supabase_client.query_expenses(user_id, settings=settings)
    except supabase_client.SupabaseAPIError as exc:
        LOGGER.error("Failed to load expenses: %s", exc)
        raise HTTPException(status_code=status.HTTP_424_FAILED_DEPENDENCY, detail="expense_query_failed") from exc


@app.get("/expenses", response_model=ExpenseListResponse)
async def list_expenses(
    user_id: str,
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: str = "date",
    settings: Settings = Depends(get_settings),
) -> ExpenseListResponse:
    if sort_by not in SORT_KEYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_sort")
    rows = _load_expenses(user_id, settings)
    filtered = filter_expenses(rows, search, category, sort_by=sort_by)
    return ExpenseListResponse(expenses=[dict(row) for row in filtered])


@app.get("/expenses/stats", response_model=ExpenseStatsResponse)
async def get_expense_stats(user_id: str, settings: Settings = Depends(get_settings)) -> ExpenseStatsResponse:
    rows = _load_expenses(user_id, settings)
    return ExpenseStatsResponse(stats=expense_stats(rows).to_dict())


@app.delete("/expenses/{expense_id}")
async def remove_expense(expense_id: str, settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    try:
        supabase_client.delete_expense(expense_id, settings=settings)
    except supabase_client.SupabaseAPIError as exc:
        LOGGER.error("Failed to delete expense %s: %s", expense_id, exc)
        raise HTTPException(status_code=status.HTTP_424_FAILED_DEPENDENCY, detail="expense_delete_failed") from exc
    return {"status": "ok"}


@app.get("/categories", response_model=CategoryListResponse)
async def categories(settings: Settings = Depends(get_settings)) -> CategoryListResponse:
    try:
        rows = supabase_client.list_categories(settings=settings)
    except supabase_client.SupabaseAPIError as exc:
        LOGGER.error("Failed to load categories: %s", exc)
        raise HTTPException(status_code=status.HTTP_424_FAILED_DEPENDENCY, detail="category_query_failed") from exc
    return CategoryListResponse(categories=rows)


__all__ = ["app"]
