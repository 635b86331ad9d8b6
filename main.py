import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.api.endpoints import router
from app.api.handlers import register_exception_handlers
from app.core.config import settings
from app.core.database import close_persistence_client, create_persistence_client
from app.core.tracing import instrument_app, setup_tracing, shutdown_tracing
from app.features.attachments import FileAttachmentService, QuoteAttachmentSaga
from app.features.database import DatabaseClient
from app.shared.correlation import CorrelationMiddleware
from app.shared.logging_config import setup_logging

logger = logging.getLogger("RenoDesk.Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the Supabase client and the upload HTTP pool once per process."""
    setup_logging(settings.SERVICE_NAME)

    supabase = await create_persistence_client(settings)
    http = httpx.AsyncClient(timeout=settings.UPLOAD_TIMEOUT_SECONDS)

    db = DatabaseClient(supabase)
    storage = FileAttachmentService(supabase, settings, http=http)
    app.state.db = db
    app.state.storage = storage
    app.state.saga = QuoteAttachmentSaga(db, storage)

    logger.info(f"{settings.SERVICE_NAME} started ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        await http.aclose()
        await close_persistence_client(supabase)
        shutdown_tracing()
        logger.info(f"{settings.SERVICE_NAME} stopped")


def create_app(lifespan_handler=lifespan) -> FastAPI:
    app = FastAPI(
        title="RenoDesk Data Service",
        description="Contacts, communications, tasks, expenses and quotes for renovation projects",
        version="1.0.0",
        lifespan=lifespan_handler,
    )
    app.add_middleware(CorrelationMiddleware)
    register_exception_handlers(app)
    setup_tracing(settings)
    instrument_app(app)
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {"message": "RenoDesk Data Service Running"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
