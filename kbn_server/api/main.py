"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kbn_server.api.middleware.auth import AuthMiddleware
from kbn_server.api.routes.saved_objects import router as saved_objects_router
from kbn_server.api.routes.status import router as status_router
from kbn_server.api.schemas import HealthResponse
from kbn_server.core.config import Settings, settings as default_settings
from kbn_server.core.errors import KbnError
from kbn_server.core.logging import configure_logging
from kbn_server.elasticsearch.cluster import ClusterClient, ElasticsearchError
from kbn_server.plugins import Plugin, PluginServer, default_plugins
from kbn_server.saved_objects.store import SavedObjectsStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config: Settings = app.state.settings
    cluster: ClusterClient = app.state.cluster
    store: SavedObjectsStore = app.state.saved_objects_store
    logger.info("Starting kbn-server", version=config.server_version)

    try:
        await store.open()

        if config.elasticsearch_startup_check:
            await cluster.wait_until_ready()

        await app.state.plugin_server.init_plugins(app.state.plugins)
        logger.info("Plugins initialized", plugins=app.state.plugin_server.initialized_plugins)

    except Exception as e:
        logger.error("Startup failed", error=str(e))
        await store.close()
        raise

    yield

    logger.info("Shutting down kbn-server")
    await cluster.close()
    await store.close()


def create_app(
    config: Optional[Settings] = None,
    cluster: Optional[ClusterClient] = None,
    plugins: Optional[list[Plugin]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use instead of the environment-loaded ones
        cluster: Cluster client to use instead of one built from ``config``
        plugins: Plugins to initialize instead of the bundled ones
    """
    config = config or default_settings
    configure_logging(config)

    app = FastAPI(
        title="kbn-server",
        description="""
# kbn-server

Plugin-based application server.

## Features

- **Saved objects**: typed documents stored by the server
- **Security roles**: role management backed by the cluster's security API
- **Canvas**: workpads and server functions

## Authentication

Every API request must carry an `Authorization` header. The credentials are
forwarded to the cluster, which authorizes the caller.
        """,
        version=config.server_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.cluster = cluster or ClusterClient(config)
    app.state.saved_objects_store = SavedObjectsStore(config.saved_objects_db_path)
    app.state.plugins = plugins if plugins is not None else default_plugins()
    app.state.plugin_server = PluginServer(app, config, app.state.cluster)

    # Add auth middleware
    app.add_middleware(AuthMiddleware)

    # Add CORS middleware; outermost, so preflights never reach auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Core routes; plugin routes are mounted during startup
    app.include_router(saved_objects_router)
    app.include_router(status_router)

    # Health check endpoint
    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="Check the health status of the server and its dependencies.",
    )
    async def health_check(request: Request) -> HealthResponse:
        """Check server health status."""
        saved_objects_health = await request.app.state.saved_objects_store.status()

        try:
            await request.app.state.cluster.ping()
            es_health = {"status": "healthy", "url": config.elasticsearch_url}
        except ElasticsearchError as e:
            es_health = {"status": "unhealthy", "url": config.elasticsearch_url, "error": e.reason}

        healthy = saved_objects_health["status"] == "healthy" and es_health["status"] == "healthy"

        return HealthResponse(
            status="healthy" if healthy else "unhealthy",
            version=config.server_version,
            saved_objects=saved_objects_health,
            elasticsearch=es_health,
            timestamp=datetime.now(timezone.utc),
        )

    register_error_handlers(app)
    return app


def register_error_handlers(app: FastAPI) -> None:
    """Render every error in the ``{statusCode, error, message}`` envelope."""

    @app.exception_handler(KbnError)
    async def kbn_error_handler(request: Request, exc: KbnError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        logger.info("Request validation failed", path=request.url.path, errors=details)
        error = KbnError(details or "Invalid request", status_code=status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=error.status_code, content=error.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        error = KbnError(str(exc.detail), status_code=exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=error.to_response(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        error = KbnError("An internal server error occurred")
        return JSONResponse(status_code=500, content=error.to_response())


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kbn_server.api.main:app",
        host=default_settings.server_host,
        port=default_settings.server_port,
        reload=default_settings.server_debug,
        log_level=default_settings.log_level.lower(),
    )
