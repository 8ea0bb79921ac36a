from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from dealdesk.api import deals
from dealdesk.api.errors import register_exception_handlers
from dealdesk.api.health import router as health_router
from dealdesk.api.rate_limit import RateLimitMiddleware
from dealdesk.core.config import settings
from dealdesk.core.database import create_db_engine, create_session_factory, dispose, init_db
from dealdesk.core.logging import get_logger, setup_logging
from dealdesk.core.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from dealdesk.repositories.deal_repo import DealRepository

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # One pool per process, shared by every request
    engine = create_db_engine(settings)
    app.state.engine = engine
    app.state.deal_repository = DealRepository(
        create_session_factory(engine),
        statement_timeout=settings.DB_STATEMENT_TIMEOUT,
    )

    # Development bootstrap; production schemas come from alembic
    try:
        await init_db(engine)
    except Exception as e:
        logger.warning("Could not create tables", error=str(e))

    logger.info("Deals API ready", environment=settings.ENVIRONMENT, port=settings.PORT)
    yield

    await dispose(engine)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Sales deal pipeline: search, filter, paginate and aggregate deals",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    Instrumentator().instrument(app).expose(app, include_in_schema=False)

    # Add middleware (order matters - last added = first executed)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=settings.is_production,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(deals.router, prefix="/api/deals", tags=["deals"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
