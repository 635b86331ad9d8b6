from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.dependencies import get_db
from app.core.config import settings
from app.features.database import DatabaseClient
from app.shared.errors import RepositoryError

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Simple health endpoint for monitoring."""
    return {"status": "healthy", "service": settings.SERVICE_NAME}


@router.get("/health/database")
async def database_health(db: DatabaseClient = Depends(get_db)):
    """Round-trip a one-row read to confirm Supabase is reachable."""
    try:
        await db.contacts.list(limit=1)
    except RepositoryError:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return {"status": "healthy", "database": "reachable"}
