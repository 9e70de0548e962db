"""FastAPI application for the Suvidha citizen-services assistant."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....config import settings, setup_logging
from ....core.domain.exceptions import InvalidInputError, SuvidhaError
from ...common.exception_handler import (
    format_exception_json,
    get_http_status_code,
    log_exception,
)
from .routers import chat, health, knowledge, schemes

logger = logging.getLogger(__name__)

# Include stack traces in error bodies
DEBUG_MODE = settings.debug


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup; log shutdown."""
    setup_logging(
        level=settings.log_level, log_file=settings.log_file, json_format=settings.log_json
    )
    logger.info("Suvidha API starting up (LLM provider: %s)", settings.llm_provider)
    logger.info("API docs available at /docs")
    logger.info("Debug mode: %s", "ENABLED" if DEBUG_MODE else "DISABLED")
    yield
    logger.info("Suvidha API shutting down...")


app = FastAPI(
    title="Suvidha API",
    description=(
        "Citizen-services assistant: scheme eligibility scoring and "
        "retrieval-grounded chat over bills, applications and grievances."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(chat.router)
app.include_router(schemes.router)
app.include_router(knowledge.router)


# =============================================================================
# Global Exception Handlers
# =============================================================================


def _request_context(request: Request) -> dict[str, str]:
    return {"path": str(request.url.path), "method": request.method}


@app.exception_handler(SuvidhaError)
async def suvidha_error_handler(request: Request, exc: SuvidhaError) -> JSONResponse:
    """Handle all SuvidhaError exceptions with structured JSON response.

    Args:
        request: The incoming request.
        exc: The SuvidhaError exception.

    Returns:
        JSONResponse with structured error details.
    """
    log_exception(exc, extra_context=_request_context(request))

    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=exc.to_dict(include_trace=DEBUG_MODE),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies, headers and query parameters as 400."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    reason = first.get("msg", "Invalid request")
    error = InvalidInputError(
        f"{field}: {reason}" if field else reason,
        context={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]},
    )
    log_exception(error, extra_context=_request_context(request))

    return JSONResponse(status_code=400, content=error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions with structured JSON response."""
    log_exception(exc, extra_context=_request_context(request))

    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=format_exception_json(exc, include_trace=DEBUG_MODE),
    )


# Export for uvicorn
__all__ = ["app"]
