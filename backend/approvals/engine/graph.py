"""Workflow Graph - Node/connection index over a workflow's embedded arrays"""
from typing import Dict, List, Optional

from ..domain.models import WorkflowNode, WorkflowConnection
from ..domain.enums import NodeType


class WorkflowGraph:
    """
    Read-only index over a workflow graph

    Lookups follow array order: the first node carrying an ID and the first
    connection leaving a node win. Connection `order` is not consulted.
    """

    def __init__(self, nodes: List[WorkflowNode], connections: List[WorkflowConnection]):
        self.nodes: Dict[str, WorkflowNode] = {}
        self.out_edges: Dict[str, List[WorkflowConnection]] = {}
        self.start: Optional[WorkflowNode] = None

        for node in nodes:
            if node.id is not None and node.id not in self.nodes:
                self.nodes[node.id] = node
            if self.start is None and node.type == NodeType.START:
                self.start = node

        for connection in connections:
            if connection.from_node is None:
                continue
            self.out_edges.setdefault(connection.from_node, []).append(connection)

    def get_node(self, node_id: Optional[str]) -> Optional[WorkflowNode]:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def next_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Target of the first connection leaving `node_id`"""
        edges = self.out_edges.get(node_id)
        if not edges:
            return None
        return self.get_node(edges[0].to)

    def __len__(self) -> int:
        return len(self.nodes)
