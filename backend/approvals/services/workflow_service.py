"""Workflow Service - Approval workflow lifecycle and matching"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config.settings import settings
from ..domain.models import (
    ApprovalWorkflow, ApprovalPathResult, Approver, RequisitionSubject, WorkflowTemplate
)
from ..domain.errors import (
    ValidationError, WorkflowValidationError, DuplicateNameError, ScopeConflictError,
    WorkflowInUseError, InvalidStateError
)
from ..engine.graph_validator import WorkflowGraphValidator
from ..engine.workflow_matcher import WorkflowMatcher
from ..engine.path_walker import PathWalker
from ..engine.templates import list_templates, skeleton_nodes
from ..repositories.workflow_repo import WorkflowRepository
from ..repositories.requisition_repo import RequisitionRepository
from ..utils.idgen import generate_workflow_id, generate_workflow_code
from ..utils.time import utc_now, format_iso, days_ago
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Managed by the service, never taken from caller input
_SYSTEM_FIELDS = frozenset({
    "workflow_id", "company_id", "code", "version", "published_at", "statistics",
    "created_by", "updated_by", "created_at", "updated_at",
})

_CLONE_EXCLUDED = frozenset({
    "workflow_id", "code", "published_at", "statistics",
    "created_by", "updated_by", "created_at", "updated_at",
})


def _field_errors(error: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


class WorkflowService:
    """Service for approval workflow operations"""

    def __init__(
        self,
        repo: Optional[WorkflowRepository] = None,
        requisitions: Optional[RequisitionRepository] = None
    ):
        self.repo = repo if repo is not None else WorkflowRepository()
        self.requisitions = requisitions if requisitions is not None else RequisitionRepository()
        self.validator = WorkflowGraphValidator()
        self.matcher = WorkflowMatcher()
        self.walker = PathWalker()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_workflow(
        self,
        company_id: Optional[str],
        created_by: Optional[str],
        fields: Dict[str, Any]
    ) -> ApprovalWorkflow:
        """
        Create a workflow

        A workflow created without nodes gets a start/end skeleton and is
        always a draft. Supplied nodes are validated up front.

        Raises:
            ValidationError: Missing company, user or name, bad field values
            WorkflowValidationError: Supplied graph is structurally invalid
            DuplicateNameError: A published workflow already uses the name
        """
        if not company_id:
            raise ValidationError("Company information is required")
        if not created_by:
            raise ValidationError("User information is required")

        name = (fields.get("name") or "").strip()
        if not name:
            raise ValidationError("Workflow name is required")

        now = utc_now()
        data = {k: v for k, v in fields.items() if k not in _SYSTEM_FIELDS}
        data.update(
            workflow_id=generate_workflow_id(),
            company_id=company_id,
            name=name,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

        has_nodes = bool(fields.get("nodes"))
        if has_nodes:
            data.setdefault("is_draft", True)
        else:
            data["nodes"] = [node.model_dump() for node in skeleton_nodes()]
            data["is_draft"] = True

        workflow = self._build_workflow(data)

        if has_nodes:
            self.validator.validate(workflow.nodes, workflow.connections)
        self._check_amount_window(workflow)

        if self.repo.name_exists(company_id, workflow.name, is_draft=False):
            raise DuplicateNameError(
                "A workflow with this name already exists",
                details={"name": workflow.name}
            )

        workflow.code = self._next_code(company_id)
        workflow = self.repo.create(workflow)

        logger.info(
            f"Created approval workflow {workflow.name}",
            extra={"workflow_id": workflow.workflow_id, "company_id": company_id,
                   "code": workflow.code, "user_id": created_by}
        )
        return workflow

    def get_workflow(self, workflow_id: str, company_id: str) -> ApprovalWorkflow:
        """Get workflow by ID"""
        return self.repo.get_or_raise(workflow_id, company_id)

    def list_workflows(
        self,
        company_id: str,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_draft: Optional[bool] = None,
        department: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[ApprovalWorkflow]:
        """List workflows"""
        return self.repo.list(
            company_id,
            search=search,
            is_active=is_active,
            is_draft=is_draft,
            department=department,
            category=category,
            skip=skip,
            limit=limit
        )

    def count_workflows(
        self,
        company_id: str,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_draft: Optional[bool] = None,
        department: Optional[str] = None,
        category: Optional[str] = None
    ) -> int:
        """Count workflows"""
        return self.repo.count(
            company_id,
            search=search,
            is_active=is_active,
            is_draft=is_draft,
            department=department,
            category=category
        )

    def update_workflow(
        self,
        workflow_id: str,
        company_id: str,
        fields: Dict[str, Any],
        updated_by: Optional[str] = None
    ) -> ApprovalWorkflow:
        """
        Merge supplied fields into a stored workflow

        Raises:
            WorkflowNotFoundError: Not in this company
            InvalidStateError: Patch would take a draft out of draft state
            WorkflowInUseError: Deactivating while requisitions are in flight
            WorkflowValidationError: New graph of a published workflow is invalid
        """
        workflow = self.repo.get_or_raise(workflow_id, company_id)
        patch = {k: v for k, v in fields.items() if k not in _SYSTEM_FIELDS}

        if workflow.is_draft and patch.get("is_draft") is False:
            raise InvalidStateError(
                "Drafts are published through the publish action",
                details={"workflow_id": workflow_id}
            )

        if patch.get("is_active") is False and workflow.is_active:
            active = self.requisitions.count_active_for_workflow(workflow_id)
            if active > 0:
                raise WorkflowInUseError(
                    f"Cannot deactivate workflow with {active} active requisitions",
                    details={"workflow_id": workflow_id, "active_requisitions": active}
                )

        data = workflow.model_dump()
        data.update(patch)
        data["updated_by"] = updated_by
        merged = self._build_workflow(data)

        if not merged.is_draft and ("nodes" in patch or "connections" in patch):
            self.validator.validate(merged.nodes, merged.connections)
        self._check_amount_window(merged)

        updated = self.repo.update(workflow_id, company_id, self.repo.to_document(merged))
        logger.info(
            f"Updated approval workflow {updated.name}",
            extra={"workflow_id": workflow_id, "company_id": company_id, "user_id": updated_by}
        )
        return updated

    def publish_workflow(
        self,
        workflow_id: str,
        company_id: str,
        published_by: Optional[str] = None
    ) -> ApprovalWorkflow:
        """
        Publish a draft

        Raises:
            InvalidStateError: Workflow is not a draft
            WorkflowValidationError: Stored graph is invalid
            ScopeConflictError: Another active workflow covers the same scope
        """
        workflow = self.repo.get_or_raise(workflow_id, company_id)

        if not workflow.is_draft:
            raise InvalidStateError(
                "Workflow is already published",
                details={"workflow_id": workflow_id, "version": workflow.version}
            )

        try:
            self.validator.validate(workflow.nodes, workflow.connections)
        except WorkflowValidationError as e:
            raise WorkflowValidationError(
                f"Cannot publish workflow: {e.message}",
                details=e.details
            ) from e

        conflict = self.repo.find_scope_conflict(workflow)
        if conflict:
            raise ScopeConflictError(
                "Active workflow with similar scope already exists",
                details={
                    "conflicting_workflow": {
                        "workflow_id": conflict.workflow_id,
                        "name": conflict.name,
                        "code": conflict.code,
                    }
                }
            )

        version = self.next_version(workflow.version)
        published = self.repo.update(workflow_id, company_id, {
            "is_draft": False,
            "is_active": True,
            "version": version,
            "published_at": format_iso(utc_now()),
            "updated_by": published_by,
        })

        logger.info(
            f"Published approval workflow {published.name}",
            extra={"workflow_id": workflow_id, "company_id": company_id, "version": version}
        )
        return published

    def clone_workflow(
        self,
        workflow_id: str,
        company_id: str,
        created_by: Optional[str],
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> ApprovalWorkflow:
        """Copy a workflow into a new draft with fresh statistics"""
        if not created_by:
            raise ValidationError("User information is required for cloning")

        source = self.repo.get_or_raise(workflow_id, company_id)

        now = utc_now()
        data = source.model_dump(exclude=set(_CLONE_EXCLUDED))
        data.update(
            workflow_id=generate_workflow_id(),
            name=name or f"{source.name} (Copy)",
            description=description or source.description,
            is_draft=True,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

        clone = self._build_workflow(data)
        clone.code = self._next_code(company_id)
        clone = self.repo.create(clone)

        logger.info(
            f"Cloned approval workflow {source.name}",
            extra={"workflow_id": clone.workflow_id, "company_id": company_id,
                   "code": clone.code, "user_id": created_by}
        )
        return clone

    def delete_workflow(self, workflow_id: str, company_id: str) -> bool:
        """
        Delete a workflow no requisition references

        Raises:
            WorkflowInUseError: Requisitions reference the workflow
        """
        self.repo.get_or_raise(workflow_id, company_id)

        count = self.requisitions.count_for_workflow(workflow_id)
        if count > 0:
            raise WorkflowInUseError(
                f"Cannot delete workflow with {count} associated requisitions",
                details={"workflow_id": workflow_id, "requisitions": count}
            )

        deleted = self.repo.delete(workflow_id, company_id)
        logger.info("Deleted approval workflow", extra={"workflow_id": workflow_id, "company_id": company_id})
        return deleted

    # =========================================================================
    # Matching & Paths
    # =========================================================================

    def find_applicable_workflow(
        self,
        subject: RequisitionSubject,
        company_id: str
    ) -> Optional[ApprovalWorkflow]:
        """Highest-priority published workflow that accepts the subject, if any"""
        candidates = self.repo.find_candidates(company_id, subject)
        return self.matcher.select(candidates, subject)

    def compute_approval_path(
        self,
        workflow_id: str,
        company_id: str,
        subject: RequisitionSubject
    ) -> ApprovalPathResult:
        """Dry run a stored workflow against a subject"""
        workflow = self.repo.get_or_raise(workflow_id, company_id)
        return self.walker.compute_path(workflow, subject)

    def get_next_approvers(
        self,
        workflow_id: str,
        company_id: str,
        current_node_id: str,
        subject: RequisitionSubject
    ) -> List[Approver]:
        """Approvers that follow `current_node_id` for this subject"""
        workflow = self.repo.get_or_raise(workflow_id, company_id)
        return self.walker.next_approvers(workflow, current_node_id, subject)

    # =========================================================================
    # Reporting
    # =========================================================================

    def get_statistics(self, workflow_id: str, company_id: str) -> Dict[str, Any]:
        """Usage of a workflow across requisitions"""
        workflow = self.repo.get_or_raise(workflow_id, company_id)
        window = settings.statistics_window_days

        node_usage = [
            {
                "node_id": node.id,
                "node_name": node.name,
                "node_type": node.type.value if node.type else None,
                "approver_count": len(node.approvers),
            }
            for node in workflow.nodes
        ]

        return {
            "workflow_id": workflow.workflow_id,
            "name": workflow.name,
            "statistics": workflow.statistics.model_dump(mode="json"),
            "active_requisitions": self.requisitions.count_active_for_workflow(workflow_id),
            "window_days": window,
            "requisitions_by_status": self.requisitions.status_breakdown(workflow_id, days_ago(window)),
            "approval_time": self.requisitions.approval_time_stats(workflow_id),
            "node_usage": node_usage,
        }

    def list_templates(self) -> List[WorkflowTemplate]:
        """Built-in starter graphs"""
        return list_templates()

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def next_version(version: Optional[str]) -> str:
        """
        Bump a decimal version string by 0.1

        '1.0' -> '1.1', '1.9' -> '2.0'. Unparseable versions restart from 1.0.
        """
        try:
            current = Decimal(str(version))
        except (InvalidOperation, ValueError):
            current = Decimal("1.0")
        if not current.is_finite():
            current = Decimal("1.0")
        return str((current + Decimal("0.1")).quantize(Decimal("0.1")))

    def _next_code(self, company_id: str) -> str:
        """First free sequential code for the company"""
        count = self.repo.count_for_company(company_id)
        code = generate_workflow_code(count)
        while self.repo.code_exists(company_id, code):
            count += 1
            code = generate_workflow_code(count)
        return code

    @staticmethod
    def parse_subject(data: Dict[str, Any]) -> RequisitionSubject:
        """
        Sample requisition data for a dry run

        Raises:
            ValidationError: A field has the wrong type, with per-field errors
        """
        try:
            return RequisitionSubject.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError("Invalid test data", details={"errors": _field_errors(e)}) from e

    @staticmethod
    def _build_workflow(data: Dict[str, Any]) -> ApprovalWorkflow:
        try:
            return ApprovalWorkflow.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError("Validation failed", details={"errors": _field_errors(e)}) from e

    @staticmethod
    def _check_amount_window(workflow: ApprovalWorkflow) -> None:
        if workflow.max_amount is not None and workflow.min_amount > workflow.max_amount:
            raise ValidationError(
                "Minimum amount cannot exceed maximum amount",
                details={"min_amount": workflow.min_amount, "max_amount": workflow.max_amount}
            )
