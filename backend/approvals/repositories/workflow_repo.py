"""Workflow Repository - Data access for approval workflows"""
import re
from typing import Any, Dict, List, Optional
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from pydantic import ValidationError

from .mongo_client import get_collection
from ..config.settings import settings
from ..domain.models import ApprovalWorkflow, RequisitionSubject
from ..domain.errors import WorkflowNotFoundError, AlreadyExistsError
from ..utils.logger import get_logger
from ..utils.time import utc_now, format_iso

logger = get_logger(__name__)


class WorkflowRepository:
    """Repository for approval workflow documents, always scoped to a company"""

    def __init__(self, collection: Optional[Collection] = None):
        self._workflows: Collection = (
            collection if collection is not None else get_collection(settings.workflows_collection)
        )

    @staticmethod
    def to_document(workflow: ApprovalWorkflow) -> Dict[str, Any]:
        """Serialize a workflow for storage"""
        doc = workflow.model_dump(mode="json", by_alias=True)
        doc["_id"] = workflow.workflow_id
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> Optional[ApprovalWorkflow]:
        doc.pop("_id", None)
        try:
            return ApprovalWorkflow.model_validate(doc)
        except ValidationError as e:
            workflow_id = doc.get("workflow_id", "unknown")
            logger.warning(
                f"Skipping corrupted workflow {workflow_id}. Errors: {len(e.errors())}",
                extra={"workflow_id": workflow_id}
            )
            return None

    def _load_many(self, cursor) -> List[ApprovalWorkflow]:
        workflows = []
        for doc in cursor:
            workflow = self._from_document(doc)
            if workflow:
                workflows.append(workflow)
        return workflows

    # =========================================================================
    # CRUD
    # =========================================================================

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        """Insert a new workflow"""
        try:
            self._workflows.insert_one(self.to_document(workflow))
        except DuplicateKeyError:
            raise AlreadyExistsError(
                f"Workflow {workflow.workflow_id} or code {workflow.code} already exists",
                details={"workflow_id": workflow.workflow_id, "code": workflow.code}
            )
        logger.info(
            f"Created workflow: {workflow.workflow_id}",
            extra={"workflow_id": workflow.workflow_id, "company_id": workflow.company_id}
        )
        return workflow

    def get(self, workflow_id: str, company_id: str) -> Optional[ApprovalWorkflow]:
        """Get workflow by ID within a company"""
        doc = self._workflows.find_one({"workflow_id": workflow_id, "company_id": company_id})
        if doc:
            return self._from_document(doc)
        return None

    def get_or_raise(self, workflow_id: str, company_id: str) -> ApprovalWorkflow:
        """Get workflow by ID or raise error"""
        workflow = self.get(workflow_id, company_id)
        if not workflow:
            raise WorkflowNotFoundError(
                "Workflow not found",
                details={"workflow_id": workflow_id}
            )
        return workflow

    def update(self, workflow_id: str, company_id: str, updates: Dict[str, Any]) -> ApprovalWorkflow:
        """
        Apply a $set update and return the stored result

        Last write wins: there is no version check.
        """
        updates = {k: v for k, v in updates.items() if k != "_id"}
        updates["updated_at"] = format_iso(utc_now())

        result = self._workflows.find_one_and_update(
            {"workflow_id": workflow_id, "company_id": company_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise WorkflowNotFoundError("Workflow not found", details={"workflow_id": workflow_id})

        logger.info(f"Updated workflow: {workflow_id}", extra={"workflow_id": workflow_id})
        workflow = self._from_document(result)
        if workflow is None:
            raise WorkflowNotFoundError(
                "Workflow document is unreadable",
                details={"workflow_id": workflow_id}
            )
        return workflow

    def delete(self, workflow_id: str, company_id: str) -> bool:
        """Hard delete"""
        result = self._workflows.delete_one({"workflow_id": workflow_id, "company_id": company_id})
        return result.deleted_count > 0

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def _list_query(
        company_id: str,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_draft: Optional[bool] = None,
        department: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"company_id": company_id}

        if search:
            pattern = re.escape(search)
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
                {"code": {"$regex": pattern, "$options": "i"}},
            ]
        if is_active is not None:
            query["is_active"] = is_active
        if is_draft is not None:
            query["is_draft"] = is_draft
        if department:
            query["departments"] = department
        if category:
            query["categories"] = category

        return query

    def list(
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
        """List a company's workflows, newest first"""
        query = self._list_query(company_id, search, is_active, is_draft, department, category)
        cursor = self._workflows.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
        return self._load_many(cursor)

    def count(
        self,
        company_id: str,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_draft: Optional[bool] = None,
        department: Optional[str] = None,
        category: Optional[str] = None,
    ) -> int:
        """Count workflows with the same filters as list()"""
        query = self._list_query(company_id, search, is_active, is_draft, department, category)
        return self._workflows.count_documents(query)

    def count_for_company(self, company_id: str) -> int:
        """All workflows in a company, used to number new codes"""
        return self._workflows.count_documents({"company_id": company_id})

    def code_exists(self, company_id: str, code: str) -> bool:
        return self._workflows.count_documents({"company_id": company_id, "code": code}, limit=1) > 0

    def name_exists(self, company_id: str, name: str, is_draft: Optional[bool] = False) -> bool:
        """
        Whether any stored document in the company uses this exact name

        Counts raw documents, so an unreadable one still blocks the name.
        `is_draft=None` matches drafts and published workflows alike.
        """
        query: Dict[str, Any] = {"company_id": company_id, "name": name}
        if is_draft is not None:
            query["is_draft"] = is_draft
        return self._workflows.count_documents(query, limit=1) > 0

    def find_candidates(self, company_id: str, subject: RequisitionSubject) -> List[ApprovalWorkflow]:
        """
        Published, active workflows that could govern the subject

        Coarse scope filter only; amount windows and trigger conditions are
        left to the matcher.
        """
        scope: List[Dict[str, Any]] = [{"apply_to_all": True}]
        if subject.department:
            scope.append({"departments": subject.department})
        if subject.department_code:
            scope.append({"department_codes": subject.department_code})
        if subject.category:
            scope.append({"categories": subject.category})

        query = {
            "company_id": company_id,
            "is_active": True,
            "is_draft": False,
            "$or": scope,
        }
        cursor = self._workflows.find(query).sort([
            ("priority", ASCENDING),
            ("created_at", DESCENDING),
        ])
        candidates = self._load_many(cursor)

        logger.debug(
            f"Found {len(candidates)} candidate workflows",
            extra={"company_id": company_id, "candidates": len(candidates)}
        )
        return candidates

    def find_scope_conflict(self, workflow: ApprovalWorkflow) -> Optional[ApprovalWorkflow]:
        """
        First other active, published workflow whose scope overlaps

        Overlap means the other workflow applies to all, or the two share a
        department or a category.
        """
        overlap: List[Dict[str, Any]] = [{"apply_to_all": True}]
        if workflow.departments:
            overlap.append({"departments": {"$in": workflow.departments}})
        if workflow.categories:
            overlap.append({"categories": {"$in": workflow.categories}})

        query = {
            "company_id": workflow.company_id,
            "workflow_id": {"$ne": workflow.workflow_id},
            "is_active": True,
            "is_draft": False,
            "$or": overlap,
        }
        doc = self._workflows.find_one(query)
        return self._from_document(doc) if doc else None
