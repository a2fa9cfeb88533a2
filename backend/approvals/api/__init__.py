"""API module - Routes and dependencies"""
from .deps import (
    get_current_user_dep, get_company_user_dep, require_workflow_admin_dep,
    get_correlation_id_dep, get_workflow_service_dep
)

__all__ = [
    "get_current_user_dep",
    "get_company_user_dep",
    "require_workflow_admin_dep",
    "get_correlation_id_dep",
    "get_workflow_service_dep",
]
