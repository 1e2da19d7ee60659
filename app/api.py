"""
FastAPI routes for the transaction tagger.
Thin HTTP layer over TransactionService; the browser UI talks to these routes.
"""
from typing import Any, Dict

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from core.config import get_settings
from core.exceptions import (
    DataNotFoundError,
    InvalidTransitionError,
    NothingToExportError,
    ParsingError,
    TaggerException,
    ValidationError,
)
from core.logger import setup_logger
from core.parsing import ACCEPTED_EXTENSIONS
from core.schema import Category, CategoryCreate, CategoryUpdate, FilterState, NotesUpdate
from services.transaction_service import TransactionService

logger = setup_logger(__name__)
settings = get_settings()

app = FastAPI(
    title="Transaction Tagger",
    description="Import bank statements, tag transactions with categories and export the review",
    version="1.0.0"
)

# Presentation-only icon names, looked up by category value
CATEGORY_ICONS: Dict[str, str] = {
    "food": "utensils",
    "groceries": "shopping-basket",
    "transport": "car",
    "shopping": "shopping-bag",
    "utilities": "lightbulb",
    "entertainment": "film",
    "health": "heart-pulse",
    "rent": "home",
    "salary": "briefcase",
    "transfers": "arrow-left-right",
    "investments": "trending-up",
    "other": "tag",
}
DEFAULT_ICON = "tag"

# Most specific classes first
ERROR_STATUS = [
    (DataNotFoundError, 404),
    (NothingToExportError, 404),
    (InvalidTransitionError, 409),
    (ParsingError, 400),
    (ValidationError, 400),
]

# Single in-memory review session
transaction_service = TransactionService()


def get_service() -> TransactionService:
    return transaction_service


def to_http_exception(error: TaggerException) -> HTTPException:
    """Map a domain error to an HTTP error carrying its message."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    logger.error(f"Unhandled service error: {error.message} {error.details}")
    return HTTPException(status_code=500, detail=error.message)


def serialize_category(category: Category) -> Dict[str, Any]:
    data = category.model_dump(by_alias=True)
    data["icon"] = CATEGORY_ICONS.get(category.value, DEFAULT_ICON)
    return data


def validate_file_extension(filename: str) -> None:
    """
    Validate the upload has an accepted extension.

    Raises:
        HTTPException: If file extension is invalid
    """
    if not filename or not filename.lower().endswith(ACCEPTED_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {filename}. Supported: {', '.join(ACCEPTED_EXTENSIONS)}."
        )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "transaction_tagger",
        "version": "1.0.0"
    }


@app.post("/upload")
async def upload_statement(
    file: UploadFile = File(...),
    service: TransactionService = Depends(get_service)
):
    """
    Load a statement, replacing the current transactions.
    On any parse error the previous transactions are kept.
    """
    logger.info(f"Received statement upload: {file.filename}")
    validate_file_extension(file.filename)

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_mb} MB upload limit"
        )

    try:
        loaded = await run_in_threadpool(service.load_file, content, filename=file.filename)
    except TaggerException as e:
        logger.warning(f"Upload of {file.filename} rejected: {e.message}")
        raise to_http_exception(e)

    return {
        "filename": file.filename,
        "loaded": loaded,
        "stats": service.build_status_statistics(),
    }


@app.get("/transactions")
async def list_transactions(
    query: str = "",
    min_amount: str = Query(default="", alias="minAmount"),
    max_amount: str = Query(default="", alias="maxAmount"),
    txn_type: str = Query(default="all", alias="type"),
    service: TransactionService = Depends(get_service)
):
    """Filtered transaction view plus review statistics."""
    try:
        filters = FilterState(query=query, min_amount=min_amount, max_amount=max_amount, type=txn_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid filters: {e}")

    transactions = service.view(filters)
    return {
        "transactions": [txn.model_dump(by_alias=True) for txn in transactions],
        "count": len(transactions),
        "stats": service.build_status_statistics(),
        "hasPending": service.store.has_pending(),
        "hasUnprocessed": service.store.has_unprocessed(),
    }


@app.put("/transactions/{txn_id}/category")
async def update_category(
    txn_id: str,
    body: CategoryUpdate,
    service: TransactionService = Depends(get_service)
):
    try:
        txn = service.update_category(txn_id, body.category)
    except TaggerException as e:
        raise to_http_exception(e)
    return txn.model_dump(by_alias=True)


@app.put("/transactions/{txn_id}/notes")
async def update_notes(
    txn_id: str,
    body: NotesUpdate,
    service: TransactionService = Depends(get_service)
):
    try:
        txn = service.update_notes(txn_id, body.notes)
    except TaggerException as e:
        raise to_http_exception(e)
    return txn.model_dump(by_alias=True)


@app.post("/transactions/approve-all")
async def approve_all(service: TransactionService = Depends(get_service)):
    approved = service.approve_all()
    return {"approved": approved, "stats": service.build_status_statistics()}


@app.post("/transactions/{txn_id}/approve")
async def approve_transaction(txn_id: str, service: TransactionService = Depends(get_service)):
    try:
        txn = service.approve(txn_id)
    except TaggerException as e:
        raise to_http_exception(e)
    return txn.model_dump(by_alias=True)


@app.post("/categorize")
async def categorize(service: TransactionService = Depends(get_service)):
    """Suggest categories for every unprocessed transaction."""
    try:
        updated = await service.categorize_unprocessed()
    except TaggerException as e:
        raise to_http_exception(e)
    return {"updated": updated, "stats": service.build_status_statistics()}


@app.get("/categories")
async def list_categories(service: TransactionService = Depends(get_service)):
    return [serialize_category(c) for c in service.categories.all()]


@app.post("/categories", status_code=201)
async def add_category(body: CategoryCreate, service: TransactionService = Depends(get_service)):
    try:
        category = service.add_category(body.label)
    except TaggerException as e:
        raise to_http_exception(e)
    return serialize_category(category)


@app.delete("/categories/{value}", status_code=204)
async def remove_category(value: str, service: TransactionService = Depends(get_service)):
    try:
        service.remove_category(value)
    except TaggerException as e:
        raise to_http_exception(e)
    return Response(status_code=204)


@app.get("/export")
async def export_transactions(
    status: str = "all",
    service: TransactionService = Depends(get_service)
):
    """Download transactions with the given status as CSV."""
    try:
        filename, csv_text = service.export(status)
    except TaggerException as e:
        raise to_http_exception(e)

    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
