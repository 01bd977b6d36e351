"""Export API endpoints."""
from typing import Any, Optional
from fastapi import APIRouter, Body, HTTPException, Query
import logging

from analytics_api.config import settings
from analytics_api.services.exporter import (
    ResponseSink,
    UnsupportedExportFormat,
    export,
    export_menu,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("/formats")
async def list_formats(disabled: bool = Query(False, description="Render the choices as disabled")):
    """Export choices offered by the export menu."""
    return export_menu(disabled=disabled)


@router.post("/{fmt}")
async def export_data(
    fmt: str,
    data: Any = Body(None, description="Analytics data exactly as returned by an analytics endpoint"),
    filename: Optional[str] = Query(None, description="Base filename without extension"),
):
    """
    Serialize already-fetched analytics data and return it as a download.

    Supported formats are csv and json. The file is named <filename>.<fmt>;
    the filename is used as given.
    """
    sink = ResponseSink()
    try:
        export(
            data,
            fmt,
            filename or settings.export_default_filename,
            sink,
            quote_record_cells=settings.export_quote_record_cells,
        )
    except UnsupportedExportFormat as e:
        logger.warning(f"Rejected export request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return sink.response
