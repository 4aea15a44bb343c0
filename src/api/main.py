"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from datasources.dependencies import create_data_source_manager
from datasources.presentation import routes as data_source_routes
from infrastructure.database.dependencies import (
    close_database_connections,
    get_registry_sessionmaker,
)
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_data_source_settings, get_settings
from infrastructure.version import __version__


@asynccontextmanager
async def crm_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - The process-wide DataSourceManager (cache sweeper, cached clients)
    - Application database engine disposal
    """
    settings = get_settings()
    configure_logging(debug=settings.debug)
    probe = DefaultStartupProbe()
    probe.application_starting(
        app_name=settings.app_name,
        environment=settings.environment,
        version=__version__,
    )

    manager = create_data_source_manager(
        get_data_source_settings(),
        get_registry_sessionmaker(),
    )
    await manager.start()
    app.state.data_source_manager = manager
    probe.application_ready()

    try:
        yield
    finally:
        app.state.data_source_manager = None
        await manager.close()
        await close_database_connections()
        probe.application_stopped()


app = FastAPI(
    title="CRM Tenant Router API",
    description="Routes authenticated requests to each tenant's data source",
    version=__version__,
    lifespan=crm_lifespan,
)

app.include_router(data_source_routes.router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}
