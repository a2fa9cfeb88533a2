"""API Dependencies - Common dependencies for routes

Failures raise domain errors; the registered handlers render them.
"""
from typing import Optional
from fastapi import Depends, Header

from ..config.settings import settings
from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError, PermissionDeniedError, ValidationError
from ..services.workflow_service import WorkflowService
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id, get_logger
from ..utils.idgen import generate_correlation_id

logger = get_logger(__name__)


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Raises:
        AuthenticationError: 401 if token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return _jwt_get_current_user(authorization)


async def get_company_user_dep(
    actor: ActorContext = Depends(get_current_user_dep)
) -> ActorContext:
    """Current user, who must belong to a company"""
    if not actor.company_id:
        raise ValidationError("Company information is required")
    return actor


async def require_workflow_admin_dep(
    actor: ActorContext = Depends(get_company_user_dep)
) -> ActorContext:
    """Current user, who must hold one of the workflow admin roles"""
    if actor.role not in settings.workflow_admin_roles_list:
        logger.warning(
            f"Role {actor.role} may not manage approval workflows",
            extra={"user_id": actor.user_id, "company_id": actor.company_id}
        )
        raise PermissionDeniedError(
            "Not authorized to manage approval workflows",
            details={"role": actor.role}
        )
    return actor


def get_workflow_service_dep() -> WorkflowService:
    """Workflow service bound to the Mongo repositories"""
    return WorkflowService()
