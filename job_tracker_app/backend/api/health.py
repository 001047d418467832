"""
Health check and system status API endpoints.
"""
import os
import logging
from datetime import datetime
from typing import Dict, Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..models.db.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "message": f"Welcome to {settings.app_name} v{settings.app_version}",
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/detailed", summary="Detailed Health Check")
def detailed_health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Detailed health check with configuration and database status.
    No secrets are included.
    """
    settings = get_settings()
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        database_ok = False

    health_status = {
        "status": "healthy" if database_ok else "unhealthy",
        "app_info": {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "debug": settings.debug,
            "testing": settings.is_testing(),
        },
        "configuration": {
            "log_level": settings.log_level,
            "database_connected": database_ok,
            "cors_enabled": settings.cors_enabled,
            "api_docs_enabled": settings.api_docs_enabled,
            "upload_directory_exists": os.path.isdir(settings.upload_directory),
        },
        "security": {
            "jwt_secret_configured": not settings.uses_default_jwt_secret(),
            "token_expiry_days": settings.access_token_expire_days,
            "bcrypt_rounds": settings.bcrypt_rounds,
        },
    }

    config_issues = settings.validate_required_settings()
    if config_issues:
        if database_ok:
            health_status["status"] = "degraded"
        health_status["configuration_issues"] = config_issues
        logger.warning("Configuration issues found: %s", config_issues)

    return health_status
