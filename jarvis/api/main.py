"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance.
It handles:
1. Application initialization
2. Router registration
3. Middleware configuration (audit, security headers, CORS)
4. Exception handlers mapping failures to {"error": ...} bodies
5. Startup/shutdown logging

Run with: uvicorn jarvis.api.main:app --reload
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jarvis import __version__
from jarvis.core.audit import AuditMiddleware, SecurityHeadersMiddleware
from jarvis.core.config import get_settings
from jarvis.core.exceptions import AssistantException, OrchestratorError, ValidationError
from jarvis.core.logging_config import get_logger, setup_logging
from jarvis.api.routes import chat_router, health_router


# Initialize logging before anything else
settings = get_settings()
setup_logging(settings.log_level, log_to_file=settings.log_to_file)
logger = get_logger(__name__)

TURN_FAILED_MESSAGE = OrchestratorError().message


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration and shutdown."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
    logger.info(f"LLM Model: {settings.llm_model}")
    logger.info(
        f"Loop limits: max_iterations={settings.max_iterations}, "
        f"max_same_calls_allowed={settings.max_same_calls_allowed}"
    )
    logger.info(f"Tool cache TTL: {settings.tool_cache_ttl_seconds}s")

    yield  # Application runs here

    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title="Jarvis Assistant API",
    description="""
    A conversational assistant powered by LLaMA-3.3-70B on Groq, able to
    search the web before answering.

    Send a message with the prior conversation to `POST /chat` and get
    the assistant's reply back.
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# Middleware Configuration (Order matters!)
# ============================================================

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditMiddleware)

# The browser frontend is served from a different origin
if settings.is_development():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.warning("CORS configured for development (all origins allowed)")


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Missing or malformed input -> 400."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body that does not match the schema -> 400, same shape as other errors."""
    logger.warning(f"Rejected request body: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body"}
    )


@app.exception_handler(AssistantException)
async def assistant_exception_handler(request: Request, exc: AssistantException):
    """Turn-level failures -> stable message, no internals leaked."""
    status_code = exc.status_code if exc.status_code < 500 else 500
    message = exc.message if status_code < 500 else TURN_FAILED_MESSAGE
    return JSONResponse(
        status_code=status_code,
        content={"error": message}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={"error": TURN_FAILED_MESSAGE}
    )


# ============================================================
# Routers
# ============================================================

app.include_router(health_router)
app.include_router(chat_router)


@app.get("/", include_in_schema=False)
async def root():
    """Point visitors at the docs."""
    return {
        "message": "Jarvis Assistant API",
        "version": __version__,
        "documentation": "/docs",
        "health": "/health"
    }


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "jarvis.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development()
    )


if __name__ == "__main__":
    run()
