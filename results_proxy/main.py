import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .batch import BatchOrchestrator
from .config import settings
from .errors import ResponseCompositionError, ResultsProxyError, ValidationError
from .fetcher import ResultFetcher, build_client
from .models import AggregateResponse, ExamDetails
from .observability import setup_logging
from .validation import validate_batch_query, validate_item_query

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "OPTIONS"]
BATCH_FAILURE_MESSAGE = "An unexpected server error occurred processing the batch."


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_format)
    async with build_client(settings) as client:
        app.state.orchestrator = BatchOrchestrator(ResultFetcher(client, settings), settings)
        logger.info("Results proxy started")
        yield
    logger.info("Results proxy shutting down")


app = FastAPI(
    title="Results Proxy",
    version="0.1.0",
    description="Batch lookup of examination results over a range of registration numbers.",
    lifespan=lifespan,
)


def get_orchestrator(request: Request) -> BatchOrchestrator:
    return request.app.state.orchestrator


def cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": "Content-Type",
    }


@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(cors_headers())
    return response


@app.exception_handler(ResultsProxyError)
async def results_proxy_error_handler(request: Request, exc: ResultsProxyError):
    if isinstance(exc, ValidationError):
        logger.warning(f"Rejected request: {exc.message}", extra={"path": request.url.path})
    else:
        logger.error(f"{exc.code}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=405,
        content={"error": f"Method {request.method} Not Allowed", "allowed": ALLOWED_METHODS},
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred"},
        headers=cors_headers(),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.options("/api/result")
@app.options("/api/results")
async def preflight() -> Response:
    return Response(status_code=204)


@app.get("/api/result")
async def item_results(
    reg_no: Optional[str] = None,
    prefix: Optional[str] = None,
    year: Optional[str] = None,
    semester: Optional[str] = None,
    exam_held: Optional[str] = None,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    query = validate_item_query(reg_no or prefix, year, semester, exam_held)
    try:
        _, keys = orchestrator.plan(query)
        batch = await orchestrator.run(keys, query)
        items = orchestrator.item_responses(
            batch, orchestrator.settings.item_redacted_fields
        )
        response = JSONResponse(
            content=[item.model_dump(by_alias=True, exclude_unset=True) for item in items]
        )
    except Exception as exc:
        logger.error("Batch processing failed", exc_info=True)
        raise ResponseCompositionError(BATCH_FAILURE_MESSAGE, str(exc)) from exc
    return response


@app.get("/api/results")
async def aggregate_results(
    prefix: Optional[str] = None,
    year: Optional[str] = None,
    semester: Optional[str] = None,
    exam_held: Optional[str] = None,
    start_suffix: Optional[str] = None,
    batch_size: Optional[str] = None,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    config = orchestrator.settings
    query = validate_batch_query(
        prefix,
        year,
        semester,
        exam_held,
        start_suffix,
        batch_size,
        max_batch_size=config.max_batch_size,
    )
    try:
        extracted_prefix, keys = orchestrator.plan(query)
        batch = await orchestrator.run(keys, query)
        results = orchestrator.successes(batch, config.aggregate_redacted_fields)
        payload = AggregateResponse(
            count=len(results),
            total_attempted=batch.attempted,
            extracted_prefix=extracted_prefix,
            exam_details=ExamDetails(
                year=query.year, semester=query.semester, held=query.exam_held
            ),
            results=results,
        )
        headers = {"Cache-Control": config.cache_control} if config.cache_control else None
        response = JSONResponse(content=payload.model_dump(), headers=headers)
    except Exception as exc:
        logger.error("Batch processing failed", exc_info=True)
        raise ResponseCompositionError(BATCH_FAILURE_MESSAGE, str(exc)) from exc
    return response
