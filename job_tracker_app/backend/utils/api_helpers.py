"""
Common API utilities shared by the route modules.
"""
import logging
from typing import Optional, TypeVar

from fastapi import HTTPException, status

from .. import schemas
from ..api.deps import ensure_owner

logger = logging.getLogger(__name__)

T = TypeVar("T")


def check_resource_exists(resource: Optional[object], resource_type: str) -> None:
    """
    Raise a 404 if a resource lookup came back empty.

    Args:
        resource: The resource to check
        resource_type: Type of resource for error message

    Raises:
        HTTPException: If resource is None
    """
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type} not found"
        )


def owned_resource(resource: Optional[T], resource_type: str, identity: schemas.Identity) -> T:
    """
    Return a loaded resource after checking it exists and belongs to the caller.

    The owner id compared is the one stored on the loaded row.

    Raises:
        HTTPException: 404 if missing, 403 if owned by someone else
    """
    check_resource_exists(resource, resource_type)
    ensure_owner(identity, resource.user_id)
    return resource


def internal_error(error: Exception, operation: str) -> HTTPException:
    """
    Log an unexpected failure and build a generic 500 response for it.

    Args:
        error: The exception that occurred
        operation: Short description of what was being attempted
    """
    logger.error("%s failed: %s", operation, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": f"{operation} failed",
            "message": f"Unable to complete {operation.lower()} at this time, please try again",
        },
    )
