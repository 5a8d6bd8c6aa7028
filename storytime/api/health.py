"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storytime.database import get_db
from storytime.services.llm import get_llm_service

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/db")
def db_health_check(db: Session = Depends(get_db)) -> dict[str, str]:
    """Database health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "database": str(e)}


@router.get("/health/llm")
async def llm_health_check() -> dict[str, str]:
    """Story generation service health check endpoint."""
    available = await get_llm_service().health_check()
    return {
        "status": "healthy" if available else "unhealthy",
        "llm": "available" if available else "unavailable",
    }
