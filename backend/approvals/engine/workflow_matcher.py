"""Workflow Matcher - Pick the workflow that governs a requisition"""
from typing import Iterable, List, Optional

from ..domain.models import ApprovalWorkflow, RequisitionSubject
from .condition_evaluator import ConditionEvaluator
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowMatcher:
    """
    Select the applicable workflow for a subject

    Given a company's published candidates:
    1. Order by priority (ascending), newest first within a priority
    2. Return the first workflow whose scope, amount window and trigger
       conditions accept the subject
    3. None when nothing applies - a normal outcome, not an error
    """

    def __init__(self):
        self.condition_evaluator = ConditionEvaluator()

    def select(
        self,
        candidates: Iterable[ApprovalWorkflow],
        subject: RequisitionSubject
    ) -> Optional[ApprovalWorkflow]:
        ordered = self.order_candidates(candidates)

        for workflow in ordered:
            if self.applies_to(workflow, subject):
                logger.info(
                    f"Selected workflow {workflow.name}",
                    extra={"workflow_id": workflow.workflow_id, "company_id": workflow.company_id,
                           "candidates": len(ordered)}
                )
                return workflow

        logger.info("No workflow matched all criteria", extra={"candidates": len(ordered)})
        return None

    @staticmethod
    def order_candidates(candidates: Iterable[ApprovalWorkflow]) -> List[ApprovalWorkflow]:
        """Priority ascending, then creation time descending"""
        newest_first = sorted(candidates, key=lambda w: w.created_at, reverse=True)
        return sorted(newest_first, key=lambda w: w.priority)

    def applies_to(self, workflow: ApprovalWorkflow, subject: RequisitionSubject) -> bool:
        """
        Check whether a workflow accepts a subject

        Checks short-circuit in order: lifecycle, apply-to-all, department,
        category, amount window, trigger conditions.
        """
        if not workflow.is_active or workflow.is_draft:
            return self._reject(workflow, "not active or is draft")

        if workflow.apply_to_all:
            return True

        if workflow.departments and subject.department:
            in_departments = subject.department in workflow.departments
            in_codes = (
                subject.department_code is not None
                and subject.department_code in workflow.department_codes
            )
            if not (in_departments or in_codes):
                return self._reject(workflow, "department mismatch")

        if workflow.categories and subject.category:
            if subject.category not in workflow.categories:
                return self._reject(workflow, "category mismatch")

        cost = subject.estimated_cost
        if cost is not None:
            if cost < workflow.min_amount:
                return self._reject(workflow, "below minimum amount")
            if workflow.max_amount is not None and cost > workflow.max_amount:
                return self._reject(workflow, "above maximum amount")

        if workflow.trigger_conditions:
            if not self.condition_evaluator.evaluate(workflow.trigger_conditions, subject):
                return self._reject(workflow, "trigger conditions not met")

        return True

    @staticmethod
    def _reject(workflow: ApprovalWorkflow, reason: str) -> bool:
        logger.debug(
            f"Workflow {workflow.name} does not apply: {reason}",
            extra={"workflow_id": workflow.workflow_id}
        )
        return False
