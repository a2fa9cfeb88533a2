"""Approval Workflow Engine - validation, matching and path computation"""
from .graph import WorkflowGraph
from .graph_validator import WorkflowGraphValidator
from .condition_evaluator import ConditionEvaluator
from .workflow_matcher import WorkflowMatcher
from .path_walker import PathWalker
from .templates import WORKFLOW_TEMPLATES, list_templates, skeleton_nodes

__all__ = [
    "WorkflowGraph",
    "WorkflowGraphValidator",
    "ConditionEvaluator",
    "WorkflowMatcher",
    "PathWalker",
    "WORKFLOW_TEMPLATES",
    "list_templates",
    "skeleton_nodes",
]
