"""In-memory stand-ins for the Mongo repositories"""
import copy
from datetime import datetime
from typing import Any, Dict, List, Optional

from approvals.config.settings import settings
from approvals.domain.errors import AlreadyExistsError, WorkflowNotFoundError
from approvals.domain.models import ApprovalWorkflow, RequisitionSubject
from approvals.repositories.workflow_repo import WorkflowRepository
from approvals.utils.time import utc_now, format_iso


class InMemoryWorkflowRepository:
    """Same interface as WorkflowRepository, documents kept in a dict"""

    to_document = staticmethod(WorkflowRepository.to_document)

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _load(doc: Dict[str, Any]) -> ApprovalWorkflow:
        data = copy.deepcopy(doc)
        data.pop("_id", None)
        return ApprovalWorkflow.model_validate(data)

    def _company_docs(self, company_id: str) -> List[Dict[str, Any]]:
        return [d for d in self.docs.values() if d["company_id"] == company_id]

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        if workflow.workflow_id in self.docs or (
            workflow.code is not None and self.code_exists(workflow.company_id, workflow.code)
        ):
            raise AlreadyExistsError(f"Workflow {workflow.workflow_id} already exists")
        self.docs[workflow.workflow_id] = self.to_document(workflow)
        return workflow

    def get(self, workflow_id: str, company_id: str) -> Optional[ApprovalWorkflow]:
        doc = self.docs.get(workflow_id)
        if doc is None or doc["company_id"] != company_id:
            return None
        return self._load(doc)

    def get_or_raise(self, workflow_id: str, company_id: str) -> ApprovalWorkflow:
        workflow = self.get(workflow_id, company_id)
        if workflow is None:
            raise WorkflowNotFoundError("Workflow not found", details={"workflow_id": workflow_id})
        return workflow

    def update(self, workflow_id: str, company_id: str, updates: Dict[str, Any]) -> ApprovalWorkflow:
        doc = self.docs.get(workflow_id)
        if doc is None or doc["company_id"] != company_id:
            raise WorkflowNotFoundError("Workflow not found", details={"workflow_id": workflow_id})
        doc.update({k: copy.deepcopy(v) for k, v in updates.items() if k != "_id"})
        doc["updated_at"] = format_iso(utc_now())
        return self._load(doc)

    def delete(self, workflow_id: str, company_id: str) -> bool:
        doc = self.docs.get(workflow_id)
        if doc is None or doc["company_id"] != company_id:
            return False
        del self.docs[workflow_id]
        return True

    def _filtered(self, company_id: str, search=None, is_active=None, is_draft=None,
                  department=None, category=None) -> List[Dict[str, Any]]:
        result = []
        for doc in self._company_docs(company_id):
            if search:
                haystack = " ".join(str(doc.get(k) or "") for k in ("name", "description", "code"))
                if search.lower() not in haystack.lower():
                    continue
            if is_active is not None and doc["is_active"] != is_active:
                continue
            if is_draft is not None and doc["is_draft"] != is_draft:
                continue
            if department and department not in doc["departments"]:
                continue
            if category and category not in doc["categories"]:
                continue
            result.append(doc)
        return result

    def list(self, company_id: str, search=None, is_active=None, is_draft=None,
             department=None, category=None, skip: int = 0, limit: int = 20) -> List[ApprovalWorkflow]:
        docs = self._filtered(company_id, search, is_active, is_draft, department, category)
        docs.sort(key=lambda d: d["created_at"], reverse=True)
        return [self._load(d) for d in docs[skip:skip + limit]]

    def count(self, company_id: str, search=None, is_active=None, is_draft=None,
              department=None, category=None) -> int:
        return len(self._filtered(company_id, search, is_active, is_draft, department, category))

    def count_for_company(self, company_id: str) -> int:
        return len(self._company_docs(company_id))

    def code_exists(self, company_id: str, code: Optional[str]) -> bool:
        return any(d.get("code") == code for d in self._company_docs(company_id))

    def name_exists(self, company_id: str, name: str, is_draft: Optional[bool] = False) -> bool:
        return any(
            doc.get("name") == name and (is_draft is None or doc.get("is_draft") == is_draft)
            for doc in self._company_docs(company_id)
        )

    def find_candidates(self, company_id: str, subject: RequisitionSubject) -> List[ApprovalWorkflow]:
        candidates = []
        for doc in self._company_docs(company_id):
            if not doc["is_active"] or doc["is_draft"]:
                continue
            if (
                doc["apply_to_all"]
                or (subject.department and subject.department in doc["departments"])
                or (subject.department_code and subject.department_code in doc["department_codes"])
                or (subject.category and subject.category in doc["categories"])
            ):
                candidates.append(self._load(doc))
        candidates.sort(key=lambda w: w.created_at, reverse=True)
        candidates.sort(key=lambda w: w.priority)
        return candidates

    def find_scope_conflict(self, workflow: ApprovalWorkflow) -> Optional[ApprovalWorkflow]:
        for doc in self._company_docs(workflow.company_id):
            if doc["workflow_id"] == workflow.workflow_id:
                continue
            if not doc["is_active"] or doc["is_draft"]:
                continue
            if (
                doc["apply_to_all"]
                or set(doc["departments"]) & set(workflow.departments)
                or set(doc["categories"]) & set(workflow.categories)
            ):
                return self._load(doc)
        return None


class InMemoryRequisitionRepository:
    """Requisitions as plain dicts: workflow_id, status, created_at, estimated_cost"""

    def __init__(self):
        self.requisitions: List[Dict[str, Any]] = []

    def add(self, workflow_id: str, status: str, created_at: Optional[datetime] = None,
            estimated_cost: float = 0) -> None:
        self.requisitions.append({
            "workflow_id": workflow_id,
            "status": status,
            "created_at": created_at or utc_now(),
            "estimated_cost": estimated_cost,
        })

    def count_for_workflow(self, workflow_id: str) -> int:
        return sum(1 for r in self.requisitions if r["workflow_id"] == workflow_id)

    def count_active_for_workflow(self, workflow_id: str, statuses: Optional[List[str]] = None) -> int:
        statuses = statuses or settings.active_requisition_statuses_list
        return sum(
            1 for r in self.requisitions
            if r["workflow_id"] == workflow_id and r["status"] in statuses
        )

    def status_breakdown(self, workflow_id: str, since: datetime) -> Dict[str, Dict[str, Any]]:
        result: Dict[str, Dict[str, Any]] = {}
        for r in self.requisitions:
            if r["workflow_id"] != workflow_id or r["created_at"] < since:
                continue
            entry = result.setdefault(r["status"], {"count": 0, "total_amount": 0})
            entry["count"] += 1
            entry["total_amount"] += r["estimated_cost"]
        for entry in result.values():
            entry["avg_amount"] = entry["total_amount"] / entry["count"]
        return result

    def approval_time_stats(self, workflow_id: str) -> Optional[Dict[str, float]]:
        return None
