import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from datavista import __version__
from datavista.api.context import get_context
from datavista.api.schema import schema
from datavista.core.config import ConfigurationError, Settings, configure_logging, get_settings
from datavista.core.database import Database
from datavista.core.security import CredentialService
from datavista.services import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    settings.check_required()

    logger.info("Starting server...")

    database = app.state.database or Database.from_settings(settings)
    await database.init_db()

    app.state.database = database
    app.state.services = build_services(
        database,
        CredentialService.from_settings(settings),
        enforce_task_ownership=settings.ENFORCE_TASK_OWNERSHIP,
    )

    yield

    logger.info("Shutting down, closing connections...")

    try:
        await database.close()
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    # uvicorn reload workers import the factory in a fresh process
    configure_logging(settings)

    app = FastAPI(
        title="DataVista API",
        description="GraphQL API for managing employees, tasks and attendance",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    graphql_router = GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide=None if settings.is_production else "graphiql",
    )
    app.include_router(graphql_router, prefix="/graphql")

    @app.get("/", tags=["health"])
    async def health_check():
        return {
            "status": "ok",
            "message": "Server is running",
            "version": __version__,
        }

    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings)

    try:
        settings.check_required()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    uvicorn.run(
        "datavista.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    run()
