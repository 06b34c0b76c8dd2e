"""dynamo-incremental-restore service entry point.

Initializes the FastAPI application with:
- structlog logging configured from settings
- The versioned S3 store (or the in-memory store when no bucket is set)
- A RestoreOrchestrator shared by all requests
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dynamo_incremental_restore.adapters.memory import InMemoryVersionStore
from dynamo_incremental_restore.adapters.s3_versions import S3VersionStore
from dynamo_incremental_restore.api.routes import router
from dynamo_incremental_restore.observability import configure_logging, get_logger
from dynamo_incremental_restore.settings import Settings
from dynamo_incremental_restore.time_machine.reconstructor import RestoreOrchestrator

logger = get_logger(__name__)


def build_orchestrator(settings: Settings) -> RestoreOrchestrator:
    """Wire the backing store and orchestrator described by settings.

    Args:
        settings: The service settings.

    Returns:
        A RestoreOrchestrator reading from S3, or from an empty in-memory
        store when no bucket is configured.
    """
    store: S3VersionStore | InMemoryVersionStore
    if settings.s3_bucket:
        store = S3VersionStore(
            bucket=settings.s3_bucket,
            prefix=settings.s3_prefix,
            region=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url,
            max_pool_connections=settings.max_concurrent_fetches,
        )
    else:
        logger.warning("No backup bucket configured, serving from the in-memory store")
        store = InMemoryVersionStore()

    return RestoreOrchestrator(
        source=store,
        fetcher=store,
        max_concurrency=settings.max_concurrent_fetches,
        pre_creation_policy=settings.pre_creation_policy,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Optional settings override; read from the environment if omitted.

    Returns:
        The configured FastAPI app with routes under /api/v1.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(settings.log_level, settings.log_json)
        logger.info(
            "Initializing restore service",
            service=settings.service_name,
            bucket=settings.s3_bucket or None,
            max_concurrent_fetches=settings.max_concurrent_fetches,
        )
        if not hasattr(app.state, "orchestrator"):
            app.state.orchestrator = build_orchestrator(settings)
        app.state.settings = settings

        yield

        logger.info("Restore service shutdown complete")

    app = FastAPI(title=settings.service_name, version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix="/api/v1")
    return app
