"""Approval Workflow API Routes - Designer and matching endpoints"""
import math
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, status

from ..deps import require_workflow_admin_dep, get_correlation_id_dep, get_workflow_service_dep
from .schemas import (
    CreateWorkflowRequest, UpdateWorkflowRequest, CloneWorkflowRequest, WorkflowTestRequest
)
from ...config.settings import settings
from ...domain.models import ActorContext, RequisitionSubject
from ...domain.errors import NotFoundError
from ...repositories.mongo_client import health_check
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _ok(data: Any, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Success envelope of the procurement back office"""
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return body


# ============================================================================
# Collection routes
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_workflow(
    request: CreateWorkflowRequest,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Create a workflow

    Without nodes the workflow is created as a draft holding a start and an
    end node.
    """
    workflow = service.create_workflow(
        company_id=actor.company_id,
        created_by=actor.user_id,
        fields=request.model_dump(exclude_unset=True)
    )
    return _ok(workflow.model_dump(mode="json"), "Workflow created successfully")


@router.get("")
async def list_workflows(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    is_draft: Optional[bool] = Query(None, alias="isDraft"),
    department: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """List the company's workflows, newest first"""
    filters = {
        "search": search,
        "is_active": is_active,
        "is_draft": is_draft,
        "department": department,
        "category": category,
    }
    workflows = service.list_workflows(
        actor.company_id, skip=(page - 1) * limit, limit=limit, **filters
    )
    total = service.count_workflows(actor.company_id, **filters)

    return _ok(
        [w.model_dump(mode="json") for w in workflows],
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        }
    )


@router.get("/templates")
async def list_templates(
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep)
):
    """Built-in starter graphs"""
    return _ok([t.model_dump(mode="json", by_alias=True) for t in service.list_templates()])


@router.get("/applicable")
async def get_applicable_workflow(
    department_id: Optional[str] = Query(None, alias="departmentId"),
    department_code: Optional[str] = Query(None, alias="departmentCode"),
    category: Optional[str] = Query(None),
    estimated_cost: Optional[float] = Query(None, alias="estimatedCost"),
    urgency: Optional[str] = Query(None),
    is_custom_item: bool = Query(False, alias="isCustomItem"),
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Workflow that would govern a requisition with these attributes"""
    subject = RequisitionSubject(
        department=department_id,
        department_code=department_code,
        category=category,
        estimated_cost=estimated_cost,
        urgency=urgency,
        isCustomItem=is_custom_item,
    )

    workflow = service.find_applicable_workflow(subject, actor.company_id)
    if workflow is None:
        raise NotFoundError("No applicable workflow found")
    return _ok(workflow.model_dump(mode="json"))


@router.get("/health")
async def workflows_health():
    """Store connectivity, no auth required"""
    mongo = health_check()
    return {
        "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
        "mongo": mongo,
    }


# ============================================================================
# Single workflow routes
# ============================================================================

@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: str,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep)
):
    workflow = service.get_workflow(workflow_id, actor.company_id)
    return _ok(workflow.model_dump(mode="json"))


@router.put("/{workflow_id}")
async def update_workflow(
    workflow_id: str,
    request: UpdateWorkflowRequest,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Apply the fields present in the body"""
    workflow = service.update_workflow(
        workflow_id,
        actor.company_id,
        request.model_dump(exclude_unset=True),
        updated_by=actor.user_id
    )
    return _ok(workflow.model_dump(mode="json"), "Workflow updated successfully")


@router.delete("/{workflow_id}")
async def delete_workflow(
    workflow_id: str,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    service.delete_workflow(workflow_id, actor.company_id)
    return _ok({"workflow_id": workflow_id}, "Workflow deleted successfully")


@router.post("/{workflow_id}/clone", status_code=status.HTTP_201_CREATED)
async def clone_workflow(
    workflow_id: str,
    request: Optional[CloneWorkflowRequest] = None,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    request = request or CloneWorkflowRequest()
    workflow = service.clone_workflow(
        workflow_id,
        actor.company_id,
        created_by=actor.user_id,
        name=request.name,
        description=request.description
    )
    return _ok(workflow.model_dump(mode="json"), "Workflow cloned successfully")


@router.post("/{workflow_id}/publish")
async def publish_workflow(
    workflow_id: str,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Validate, check scope conflicts and publish a draft"""
    workflow = service.publish_workflow(workflow_id, actor.company_id, published_by=actor.user_id)
    return _ok(workflow.model_dump(mode="json"), "Workflow published successfully")


@router.post("/{workflow_id}/test")
async def test_workflow(
    workflow_id: str,
    request: WorkflowTestRequest,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Dry run the workflow against sample requisition data"""
    subject = service.parse_subject(request.test_data)
    result = service.compute_approval_path(workflow_id, actor.company_id, subject)
    return _ok(result.model_dump(mode="json"))


@router.get("/{workflow_id}/statistics")
async def get_workflow_statistics(
    workflow_id: str,
    actor: ActorContext = Depends(require_workflow_admin_dep),
    service: WorkflowService = Depends(get_workflow_service_dep)
):
    return _ok(service.get_statistics(workflow_id, actor.company_id))
