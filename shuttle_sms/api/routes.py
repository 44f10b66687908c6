"""
API routes for Shuttle SMS.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from shuttle_sms.core.config import settings
from shuttle_sms.core.errors import ParseError
from shuttle_sms.core.models import DispatchResult, PreviewItem
from shuttle_sms.services.dispatcher import SmsDispatcher, build_dispatcher

logger = logging.getLogger(__name__)

# Create routers
health_router = APIRouter()
sms_router = APIRouter()

_dispatcher: Optional[SmsDispatcher] = None


def get_dispatcher() -> SmsDispatcher:
    """Dispatcher singleton, built on first use"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher()
    return _dispatcher


def peek_dispatcher() -> Optional[SmsDispatcher]:
    """The dispatcher if it has been built, without building it"""
    return _dispatcher


# Request/Response Models
class BatchRequest(BaseModel):
    """Batch of trip lines, one per line"""
    input: str = Field(..., description="Raw lines: phone, route, hour, date")


class PreviewResponse(BaseModel):
    success: bool = True
    preview: List[PreviewItem]


class SendBulkResponse(BaseModel):
    success: bool = True
    results: List[DispatchResult]


class LogsResponse(BaseModel):
    success: bool = True
    logs: List[DispatchResult]


# Health Check Routes
@health_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME
    }


# SMS Routes
@sms_router.post("/preview", response_model=PreviewResponse)
async def preview(request: BatchRequest, dispatcher: SmsDispatcher = Depends(get_dispatcher)):
    """
    Render the messages of a batch without sending them.

    One unparseable line rejects the whole preview with a 400.
    """
    try:
        items = dispatcher.preview(request.input)
    except ParseError as e:
        logger.info(f"Preview rejected: {e.reason}")
        return JSONResponse(status_code=400, content={"success": False, "error": e.reason})
    return PreviewResponse(preview=items)


@sms_router.post("/send-bulk", response_model=SendBulkResponse)
async def send_bulk(request: BatchRequest, dispatcher: SmsDispatcher = Depends(get_dispatcher)):
    """
    Send a batch, one line at a time, and return the outcome of every line.

    Per-line failures are reported in the results, not as an HTTP error.
    """
    try:
        results = await dispatcher.send_bulk(request.input)
    except Exception as e:
        logger.error(f"Send bulk error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return SendBulkResponse(results=results)


@sms_router.get("/logs", response_model=LogsResponse)
async def list_logs(dispatcher: SmsDispatcher = Depends(get_dispatcher)):
    """Send log, most recent first"""
    try:
        logs = dispatcher.log_store.read_all()
    except Exception as e:
        logger.error(f"Read logs error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return LogsResponse(logs=logs)
