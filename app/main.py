"""
Email-marketing back-office API with background job lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.jobs.deletion_job import DeletionJobRunner
from app.jobs.import_registry import ImportJobRegistry
from app.jobs.job_status_store import JobStatusStore
from app.middleware import CORSMiddleware, RequestContextMiddleware
from app.routes import accounts, deletions, health, imports, provider_resources
from app.services.account_store import AccountStore
from app.services.credentials import CredentialResolver
from app.services.providers import build_gateways

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build stores, gateways and job owners on startup; tear them down on shutdown."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    job_config = settings.get_job_config()

    account_store = AccountStore(settings.accounts_path())
    gateways = build_gateways(settings)
    resolver = CredentialResolver(account_store, gateways)

    import_registry = ImportJobRegistry(
        resolver,
        tick_seconds=job_config["elapsed_tick_seconds"],
        max_delay_seconds=settings.MAX_IMPORT_DELAY_SECONDS,
    )
    deletion_runner = DeletionJobRunner(
        resolver,
        JobStatusStore(
            retention_seconds=job_config["deletion_retention_seconds"],
            abandoned_retention_seconds=job_config["deletion_abandoned_retention_seconds"],
        ),
        page_size=job_config["deletion_page_size"],
    )

    app.state.account_store = account_store
    app.state.credential_resolver = resolver
    app.state.import_registry = import_registry
    app.state.deletion_runner = deletion_runner

    import_registry.start_ticker()
    logger.info(
        "All services initialized successfully",
        accounts_file=str(account_store.path),
        providers=sorted(gateways),
    )

    yield

    # Shutdown sequence (jobs first, they use the gateways)
    logger.info("Application shutting down")

    shutdown_errors = []

    try:
        await import_registry.shutdown()
    except Exception as e:
        logger.error("Error stopping import jobs", error=str(e))
        shutdown_errors.append(f"Imports: {e}")

    try:
        await deletion_runner.shutdown()
    except Exception as e:
        logger.error("Error stopping deletion jobs", error=str(e))
        shutdown_errors.append(f"Deletions: {e}")

    for name, gateway in gateways.items():
        try:
            await gateway.aclose()
        except Exception as e:
            logger.error("Error closing provider client", provider=name, error=str(e))
            shutdown_errors.append(f"{name}: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Email Marketing Back Office",
    description="Multi-provider contact management with background import and deletion jobs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allowed_origins=settings.CORS_ALLOWED_ORIGINS)
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(provider_resources.router)
app.include_router(imports.router)
app.include_router(deletions.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3001)
