"""
FastAPI application for the record mapping engine.

Exposes saving and parsing of records over HTTP. Records travel as JSON
objects; parsed records are plain dictionaries keyed by property name.

API Endpoints:
    - GET /health: Health check
    - POST /records/save: Save JSON records to an .xlsx download
    - POST /records/parse: Upload an .xlsx file and parse its records

Example:
    To run the server:
        uvicorn recordsheet.main:app --reload

    Or programmatically:
        from recordsheet.main import run_server
        run_server()
"""

import io
import json
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from recordsheet import __version__
from recordsheet.exceptions.mapping_exceptions import MappingServiceError
from recordsheet.models.mapping_models import (
    MappingErrorResponse,
    ParseRecordsResponse,
    SaveRecordsRequest,
)
from recordsheet.services.record_service import RecordService

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

record_service: RecordService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes the record service on startup and drops it on shutdown.

    Args:
        app: The FastAPI application instance.
    """
    global record_service
    record_service = RecordService()
    yield
    record_service = None


app = FastAPI(
    title="Record Sheet Service",
    description="""
    Map JSON records to and from spreadsheet sheets by header text.

    ## Features

    - **Save**: records become rows, properties become columns named by a header map
    - **Parse**: columns are found by header text, in any order
    - **Error capture**: unreadable properties and unparsable cells are reported, not fatal
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_service() -> RecordService:
    """
    Get the record service instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if record_service is None:
        raise HTTPException(
            status_code=503,
            detail="Record service is not initialized",
        )
    return record_service


def handle_mapping_error(error: MappingServiceError) -> JSONResponse:
    """
    Convert a MappingServiceError to an HTTP response.

    Args:
        error: The MappingServiceError to convert.

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code_map = {
        "INVALID_ARGUMENT": 400,
        "INVALID_FILE_FORMAT": 400,
        "INVALID_HEADER_ROW": 422,
        "SHEET_NOT_FOUND": 404,
        "WRITE_ERROR": 500,
    }

    status_code = status_code_map.get(error.error_code, 500)

    return JSONResponse(
        status_code=status_code,
        content=MappingErrorResponse(
            success=False,
            error_code=error.error_code,
            message=error.message,
            details=error.details,
        ).model_dump(),
    )


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status and timestamp.
    """
    return {
        "status": "healthy",
        "service": "Record Sheet Service",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post(
    "/records/save",
    tags=["Records"],
    summary="Save records to a workbook",
    response_class=Response,
    responses={
        200: {"content": {XLSX_MEDIA_TYPE: {}}, "description": "The generated workbook"},
        400: {"model": MappingErrorResponse, "description": "Invalid request"},
        422: {"model": MappingErrorResponse, "description": "Datum errors in strict mode"},
    },
)
async def save_records(request: SaveRecordsRequest) -> Response:
    """
    Save JSON records to a single-sheet workbook.

    Each key of ``header_map`` names a record property; missing properties
    are datum errors. With ``strict`` set, any datum error fails the
    request instead of producing a workbook.
    """
    service = get_service()
    output = io.BytesIO()

    try:
        result = service.save_sheet(
            service.adapter.create_workbook(),
            request.header_map,
            request.records,
            output,
            sheet_name=request.sheet_name,
            datum_error_placeholder=request.datum_error_placeholder,
            still_save_if_data_error=not request.strict,
        )
    except MappingServiceError as e:
        return handle_mapping_error(e)

    if not result.written:
        return JSONResponse(
            status_code=422,
            content=MappingErrorResponse(
                error_code="DATUM_ERRORS",
                message=f"{len(result.datum_errors)} datum error(s); workbook not written",
                details={
                    "datum_errors": [error.model_dump() for error in result.datum_errors],
                },
            ).model_dump(),
        )

    filename = f"{result.sheet_name}.xlsx"
    return Response(
        content=output.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Datum-Error-Count": str(len(result.datum_errors)),
        },
    )


@app.post(
    "/records/parse",
    tags=["Records"],
    summary="Parse records from an uploaded workbook",
    response_model=ParseRecordsResponse,
    responses={
        400: {"model": MappingErrorResponse, "description": "Invalid file or header map"},
        404: {"model": MappingErrorResponse, "description": "Sheet not found"},
        422: {"model": MappingErrorResponse, "description": "No header matched"},
    },
)
async def parse_records(
    file: Annotated[UploadFile, File(description="Workbook to parse (.xlsx, .xlsm)")],
    reverse_header_map: Annotated[
        str,
        Form(description='JSON object of header text to property name, e.g. {"Id": "id"}'),
    ],
    sheet_index: Annotated[int, Form(description="Sheet index (0-based)")] = 0,
    sheet_name: Annotated[str | None, Form(description="Sheet name")] = None,
) -> ParseRecordsResponse | JSONResponse:
    """
    Parse an uploaded workbook into JSON records.

    Every mapped cell arrives as text (or an ISO date for date cells);
    cells that cannot be set are listed in ``cell_errors``.
    """
    try:
        header_map = json.loads(reverse_header_map)
    except json.JSONDecodeError as e:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_ARGUMENT", "message": f"reverse_header_map: {e}"},
        ) from e

    if not isinstance(header_map, dict):
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "INVALID_ARGUMENT",
                "message": "reverse_header_map must be a JSON object",
            },
        )

    service = get_service()
    content = await file.read()

    try:
        result = service.parse_sheet(
            header_map,
            io.BytesIO(content),
            dict,
            sheet_index=sheet_index,
            sheet_name=sheet_name,
        )
    except MappingServiceError as e:
        return handle_mapping_error(e)

    return ParseRecordsResponse(
        sheet_name=result.sheet_name,
        records=result.records,
        cell_errors=[error.model_dump() for error in result.cell_errors],
    )


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to $RECORDSHEET_HOST or "0.0.0.0".
        port: Port to listen on. Defaults to $RECORDSHEET_PORT or 8000.
        reload: Whether to enable auto-reload. Defaults to False.

    Example:
        from recordsheet.main import run_server
        run_server(host="127.0.0.1", port=8080)
    """
    uvicorn.run(
        "recordsheet.main:app",
        host=host or os.getenv("RECORDSHEET_HOST", "0.0.0.0"),
        port=port or int(os.getenv("RECORDSHEET_PORT", "8000")),
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
