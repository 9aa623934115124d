"""Liveness endpoint for monitoring and deployment verification.

Reports whether the draft database answers and the YAML catalogs load. The
platform's own health is checked through the admin health endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fokushub.config import get_settings
from fokushub.models.database import get_db
from fokushub.services.catalog_loader import (
    CatalogNotFoundError,
    CatalogValidationError,
    load_notice_catalog,
    load_setting_catalog,
)
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> dict:
    """Health check endpoint.

    Returns:
        dict: Status, database and catalog state, deployed version

    Raises:
        HTTPException: 503 if the database or a catalog is unavailable

    Example response:
        {
            "status": "healthy",
            "database": "connected",
            "catalogs": "loaded",
            "version": "abc1234"
        }
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable - database connection failed"
        )

    try:
        load_setting_catalog()
        load_notice_catalog()
    except (CatalogNotFoundError, CatalogValidationError) as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable - catalogs could not be loaded"
        )

    logger.debug("Health check passed")
    return {
        "status": "healthy",
        "database": "connected",
        "catalogs": "loaded",
        "version": get_settings().git_commit_sha,
    }
