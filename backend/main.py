"""
PL/pgSQL Test Runner - Main Application Entry Point

FastAPI application that runs SQL test scripts against a live Postgres
database and reports PASSED/FAILED notices back to the browser.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
import logging

from backend.config import settings
from backend.api.error_handling import invalid_request_response
from backend.connectors.postgres_pool import PoolManager
from backend.core.runner import ScriptRunner
from backend.core.script_loader import ScriptLoader

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(settings.LOG_FILE)
        if settings.LOG_FILE
        else logging.NullHandler(),
    ],
)

# asyncpg logs every pool connection at DEBUG
logging.getLogger("asyncpg").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

APP_NAME = "PL/pgSQL Test Runner"
APP_VERSION = "0.1.0"

# Base directory for templates and static files
BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events.
    """
    runner: ScriptRunner = app.state.runner

    # Startup
    logger.info("🚀 Test runner starting up...")
    logger.info(f"📁 Scripts directory: {runner.loader.scripts_dir}")
    logger.info(
        f"🔧 Environment: {'Development' if settings.APP_DEBUG else 'Production'}"
    )

    if settings.DATABASE_URL and settings.CONNECT_ON_STARTUP:
        try:
            logger.info("🐘 Initializing Postgres connection pool...")
            await runner.pool_manager.connect(settings.DATABASE_URL)
            logger.info("✅ Postgres pool initialized")
        except Exception as e:
            logger.error(f"❌ Failed to initialize connection pool: {e}")
            logger.warning("⚠️  Application starting without a database connection")
    else:
        logger.info("🐘 Waiting for a connection string from the UI (/api/connect)")

    yield

    # Shutdown
    logger.info("🛑 Test runner shutting down...")
    try:
        await runner.pool_manager.close()
        logger.info("✅ Connection pool closed")
    except Exception as e:
        logger.error(f"Error closing connection pool: {e}")


def build_runner() -> ScriptRunner:
    return ScriptRunner(
        pool_manager=PoolManager(),
        loader=ScriptLoader(),
        command_timeout=settings.COMMAND_TIMEOUT,
    )


# Initialize FastAPI application
app = FastAPI(
    title=APP_NAME,
    description="Runs SQL test scripts and classifies their PASSED/FAILED notices",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)
app.state.runner = build_runner()

app.add_middleware(
    cast(Any, CORSMiddleware),
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Initialize Jinja2 templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

templates.env.globals.update(
    {
        "app_name": APP_NAME,
        "app_version": APP_VERSION,
    }
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same error shape as other failures."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return invalid_request_response(
        request.url.path, f"Invalid request: {problems or 'malformed body'}"
    )


# ============================================================================
# Page, Health Check & Info Endpoints
# ============================================================================


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def root(request: Request):
    """
    Runner page - one section per SQL test script.
    """
    runner: ScriptRunner = request.app.state.runner
    return templates.TemplateResponse(
        request,
        "test_runner.html",
        {"scripts": runner.loader.list_scripts()},
    )


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Service health status and pool information
    """
    runner: ScriptRunner = request.app.state.runner
    health_status: dict[str, Any] = {
        "status": "healthy",
        "service": "plpgsql-test-runner",
        "version": APP_VERSION,
        "environment": "development" if settings.APP_DEBUG else "production",
        "checks": {},
    }

    stats = runner.pool_manager.get_pool_stats()
    health_status["checks"]["postgres"] = {
        "status": "connected" if stats["initialized"] else "not_connected",
        "pool": stats,
    }
    return health_status


@app.get("/api/info")
async def api_info():
    """
    API information endpoint.
    """
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "endpoints": {
            "api_docs": "/api/docs",
            "health": "/health",
            "connect": "/api/connect",
            "run_test": "/api/run-test",
            "summary": "/api/summary",
        },
    }


# ============================================================================
# API Routes
# ============================================================================

from backend.api.routes import runner as runner_router  # noqa: E402

app.include_router(runner_router.router, prefix="/api", tags=["runner"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.APP_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
