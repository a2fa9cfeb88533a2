"""Path Walker - Compute the approval path a subject would take"""
from typing import List, Optional, Set

from ..domain.models import (
    ApprovalWorkflow, ApprovalPathResult, Approver, PathStep, RequisitionSubject, WorkflowNode
)
from ..domain.enums import NodeType
from ..domain.errors import MaxStepsExceededError
from .condition_evaluator import ConditionEvaluator
from .graph import WorkflowGraph
from .workflow_matcher import WorkflowMatcher
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PathWalker:
    """
    Walk a workflow graph from its start node for a given subject

    - Condition nodes branch to true_branch / false_branch
    - Any other node follows its first outgoing connection
    - The walk stops before the end node, or early at a graph hole
      (missing branch target or no outgoing connection); a partial path
      is a valid result
    - Revisiting a node means the graph loops for this subject, which
      raises MaxStepsExceededError
    """

    def __init__(self):
        self.condition_evaluator = ConditionEvaluator()
        self.matcher = WorkflowMatcher()

    def compute_path(
        self,
        workflow: ApprovalWorkflow,
        subject: RequisitionSubject
    ) -> ApprovalPathResult:
        """
        Dry run a workflow against a subject

        Returns:
            Whether the workflow applies, the ordered path, SLA and the
            auto-approve decision
        """
        path = self.walk(workflow, subject)

        return ApprovalPathResult(
            applies=self.matcher.applies_to(workflow, subject),
            approval_path=path,
            estimated_steps=len(path),
            sla_hours=workflow.sla_hours,
            auto_approve=self.is_auto_approved(workflow, subject),
        )

    def walk(self, workflow: ApprovalWorkflow, subject: RequisitionSubject) -> List[PathStep]:
        graph = WorkflowGraph(workflow.nodes, workflow.connections)
        path: List[PathStep] = []
        visited: Set[str] = set()
        current = graph.start

        while current is not None and current.type != NodeType.END:
            if current.id in visited:
                raise MaxStepsExceededError(
                    f"Approval path loops back to node '{current.id}'",
                    details={
                        "workflow_id": workflow.workflow_id,
                        "node_id": current.id,
                        "steps": len(path),
                    }
                )
            visited.add(current.id)

            path.append(PathStep(
                node_id=current.id,
                node_name=current.name,
                node_type=current.type,
                approvers=current.approvers or [],
                conditions=current.conditions or [],
            ))

            current = self._next_node(graph, current, subject)

        if current is None:
            logger.debug(
                "Approval path ended without reaching an end node",
                extra={"workflow_id": workflow.workflow_id, "node_id": path[-1].node_id if path else None}
            )

        return path

    def next_approvers(
        self,
        workflow: ApprovalWorkflow,
        current_node_id: str,
        subject: RequisitionSubject
    ) -> List[Approver]:
        """
        Approvers to consult after `current_node_id`

        Condition nodes yield the approvers of the branch they resolve to;
        approval and parallel nodes yield their own approvers.
        """
        current = workflow.get_node(current_node_id)
        if current is None:
            return []

        if current.type == NodeType.CONDITION:
            met = self.condition_evaluator.evaluate(current.conditions, subject)
            target = workflow.get_node(current.true_branch if met else current.false_branch)
            return list(target.approvers) if target else []

        if current.type in (NodeType.APPROVAL, NodeType.PARALLEL):
            return list(current.approvers)

        return []

    @staticmethod
    def is_auto_approved(workflow: ApprovalWorkflow, subject: RequisitionSubject) -> bool:
        """Threshold set (non-zero) and subject cost at or under it"""
        if not workflow.auto_approve_below or subject.estimated_cost is None:
            return False
        return subject.estimated_cost <= workflow.auto_approve_below

    def _next_node(
        self,
        graph: WorkflowGraph,
        current: WorkflowNode,
        subject: RequisitionSubject
    ) -> Optional[WorkflowNode]:
        if current.type == NodeType.CONDITION:
            met = self.condition_evaluator.evaluate(current.conditions, subject)
            return graph.get_node(current.true_branch if met else current.false_branch)
        return graph.next_node(current.id)
