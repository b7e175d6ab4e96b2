"""
FastAPI web application for the blackline redaction service.

This module provides REST API endpoints for:
- Inspecting a PDF (page count and sizes)
- Converting a capture-context rectangle to PDF points for live overlays
- Applying permanent redactions and streaming back the new PDF
"""

from __future__ import annotations

import io
import json
import logging
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .. import __version__
from ..config import BlacklineConfig
from ..engine.geometry import Rect, Size, normalize_coordinates
from ..errors import (
    InvalidArea,
    NoAreasSpecified,
    PageRenderFailed,
    RedactionError,
    RenderingBackendUnavailable,
    SourceUnreadable,
)
from ..visual.redactor import apply_redactions, inspect_document

logger = logging.getLogger(__name__)


# Pydantic models for API requests/responses
class RectModel(BaseModel):
    x: float
    y: float
    width: float
    height: float


class SizeModel(BaseModel):
    width: float
    height: float


class NormalizeRequest(BaseModel):
    """Pixel rect drawn on a capture canvas, plus the canvas and page sizes."""
    rect: RectModel
    capture: Optional[SizeModel] = None
    page: SizeModel


class InspectResponse(BaseModel):
    page_count: int
    pages: List[SizeModel]


# FastAPI app configuration
app = FastAPI(
    title="blackline API",
    description="Permanent, rasterizing PDF redaction",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Global configuration
blackline_config = BlacklineConfig()

_STATUS_BY_ERROR = {
    NoAreasSpecified: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidArea: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SourceUnreadable: status.HTTP_400_BAD_REQUEST,
    PageRenderFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    RenderingBackendUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(error: RedactionError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.exception(f"Redaction failed: {error}")
    else:
        logger.warning(f"Rejected redaction request: {error}")
    return HTTPException(status_code=code, detail={"error": type(error).__name__, "message": str(error)})


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "blackline API - permanent PDF redaction",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "blackline-api"}


@app.post("/normalize", response_model=RectModel)
async def normalize(request: NormalizeRequest):
    """Convert a capture-context pixel rect to a rect in PDF points."""
    capture = Size(request.capture.width, request.capture.height) if request.capture else None
    result = normalize_coordinates(
        Rect(**request.rect.model_dump()),
        capture,
        Size(request.page.width, request.page.height),
    )
    return RectModel(**result.to_dict())


@app.post("/inspect", response_model=InspectResponse)
async def inspect(file: UploadFile = File(...)):
    """Page count and page sizes (PDF points) of an uploaded document."""
    try:
        sizes = inspect_document(await file.read())
    except RedactionError as e:
        raise http_error(e)
    return InspectResponse(
        page_count=len(sizes),
        pages=[SizeModel(width=size.width, height=size.height) for size in sizes],
    )


@app.post("/redact")
async def redact_document(
    file: UploadFile = File(...),
    areas: str = Form(..., description="JSON list of areas"),
):
    """
    Permanently redact the uploaded PDF.

    `areas` is a JSON list of
    {pageIndex, rect: {x, y, width, height}, captureWidth, captureHeight}.
    """
    try:
        parsed = json.loads(areas)
    except json.JSONDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "InvalidArea", "message": f"areas is not valid JSON: {e}"},
        )
    if not isinstance(parsed, list):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "InvalidArea", "message": "areas must be a JSON list"},
        )

    source = await file.read()
    try:
        redacted = apply_redactions(source, parsed, config=blackline_config)
    except RedactionError as e:
        raise http_error(e)

    filename = (file.filename or "document.pdf").rsplit(".", 1)[0]
    return StreamingResponse(
        io.BytesIO(redacted),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}_redacted.pdf"'},
    )
