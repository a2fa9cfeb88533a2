"""Graph Validator - Structural checks a workflow must pass before publishing"""
from typing import List, Optional

from ..domain.models import WorkflowNode, WorkflowConnection
from ..domain.enums import NodeType
from ..domain.errors import WorkflowValidationError


class WorkflowGraphValidator:
    """
    Shallow structural validation of a node/connection set

    Checks node counts, per-node payloads and connection endpoints. It does
    not look for multi-node cycles or unreachable nodes; the path walker
    guards against loops at run time.
    """

    def validate(
        self,
        nodes: List[WorkflowNode],
        connections: Optional[List[WorkflowConnection]] = None
    ) -> bool:
        """
        Validate nodes, then connections

        Raises:
            WorkflowValidationError: first problem found
        """
        self.validate_nodes(nodes)
        self.validate_connections(nodes, connections or [])
        return True

    def validate_nodes(self, nodes: List[WorkflowNode]) -> bool:
        if not nodes:
            raise WorkflowValidationError("Workflow must have at least one node")

        start_nodes = [n for n in nodes if n.type == NodeType.START]
        end_nodes = [n for n in nodes if n.type == NodeType.END]

        if len(start_nodes) != 1:
            raise WorkflowValidationError(
                "Workflow must have exactly one start node",
                details={"start_nodes": len(start_nodes)}
            )

        if not end_nodes:
            raise WorkflowValidationError("Workflow must have at least one end node")

        for index, node in enumerate(nodes):
            if not node.id or not node.type or not node.name:
                raise WorkflowValidationError(
                    "Each node must have id, type, and name",
                    details={"index": index, "node_id": node.id}
                )

            if node.type in (NodeType.APPROVAL, NodeType.PARALLEL):
                self._check_approvers(node)
            elif node.type == NodeType.CONDITION:
                self._check_condition(node)

        return True

    def validate_connections(
        self,
        nodes: List[WorkflowNode],
        connections: List[WorkflowConnection]
    ) -> bool:
        node_ids = {n.id for n in nodes}

        for index, connection in enumerate(connections):
            details = {"index": index, "from": connection.from_node, "to": connection.to}

            if not connection.from_node or not connection.to:
                raise WorkflowValidationError(
                    "Each connection must have from and to node IDs", details=details
                )

            if connection.from_node not in node_ids or connection.to not in node_ids:
                raise WorkflowValidationError(
                    "Connection references non-existent node", details=details
                )

            if connection.from_node == connection.to:
                raise WorkflowValidationError(
                    "Cannot connect a node to itself", details=details
                )

        return True

    @staticmethod
    def _check_approvers(node: WorkflowNode) -> None:
        if not node.approvers:
            raise WorkflowValidationError(
                "Approval nodes must have at least one approver",
                details={"node_id": node.id}
            )

        if node.min_approvals is not None and not 1 <= node.min_approvals <= len(node.approvers):
            raise WorkflowValidationError(
                "Minimum approvals must be between 1 and number of approvers",
                details={
                    "node_id": node.id,
                    "min_approvals": node.min_approvals,
                    "approvers": len(node.approvers)
                }
            )

    @staticmethod
    def _check_condition(node: WorkflowNode) -> None:
        if not node.conditions:
            raise WorkflowValidationError(
                "Condition nodes must have at least one condition",
                details={"node_id": node.id}
            )

        if not node.true_branch or not node.false_branch:
            raise WorkflowValidationError(
                "Condition nodes must have both true and false branches",
                details={"node_id": node.id}
            )
