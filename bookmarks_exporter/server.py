"""FastAPI application serving the scrape endpoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from .collectors.source import StoreOpenError
from .config.models import ServerConfig
from .orchestrator import CollectionOrchestrator, OrchestratorClosed
from .services.exposition import MetricsExporter


def create_app(
    config: ServerConfig,
    orchestrator: CollectionOrchestrator,
    exporter: MetricsExporter,
    logger: logging.Logger
) -> FastAPI:
    """
    Build the ASGI application.

    Each request to the metrics path triggers one collection run and then
    serves the gauge store, complete or not. Only a store that cannot be
    opened turns the scrape into a 500.

    Args:
        config: Server configuration (metrics path)
        orchestrator: Collection orchestrator
        exporter: Registry bridge rendering the exposition text
        logger: Logger instance

    Returns:
        FastAPI: Configured application
    """
    logger = logger.getChild("server")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving metrics on {config.metrics_path}")
        yield
        logger.info("Shutting down, releasing collection resources")
        await orchestrator.close()

    app = FastAPI(
        title="bookmarks-alive-exporter",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan
    )
    app.state.orchestrator = orchestrator
    app.state.exporter = exporter

    @app.get(config.metrics_path)
    async def metrics() -> Response:
        try:
            run = await orchestrator.collect()
        except StoreOpenError as e:
            logger.error(f"Error collecting metrics: {e}", exc_info=True)
            exporter.record_failure()
            return PlainTextResponse("Internal Server Error", status_code=500)
        except OrchestratorClosed:
            logger.info("Shutdown in progress, serving current snapshot without collecting")
        else:
            exporter.record_run(run)

        return Response(content=exporter.render(), media_type=exporter.content_type)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "collecting": not orchestrator.closed}

    return app
