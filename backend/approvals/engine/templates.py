"""Workflow Templates - Built-in starter graphs for the workflow designer"""
from typing import List

from ..domain.models import WorkflowNode, WorkflowTemplate


def skeleton_nodes() -> List[WorkflowNode]:
    """Start and end nodes a new workflow is created with when none are given"""
    return [
        WorkflowNode(id="start-1", type="start", name="Start", position={"x": 100, "y": 100}),
        WorkflowNode(id="end-1", type="end", name="End", position={"x": 100, "y": 400}),
    ]


_STANDARD = {
    "template_id": "template-standard",
    "name": "Standard Procurement Workflow",
    "description": "Basic approval chain for general purchases",
    "nodes": [
        {"id": "start-1", "type": "start", "name": "Request Submitted", "position": {"x": 250, "y": 50}},
        {
            "id": "approval-1",
            "type": "approval",
            "name": "Department Head Approval",
            "position": {"x": 250, "y": 150},
            "approval_type": "sequential",
            "min_approvals": 1,
            "timeout_hours": 24,
        },
        {
            "id": "condition-1",
            "type": "condition",
            "name": "Amount Check",
            "position": {"x": 250, "y": 250},
            "conditions": [{"field": "estimatedCost", "operator": "lt", "value": 50000}],
            "true_branch": "approval-2",
            "false_branch": "approval-3",
        },
        {
            "id": "approval-2",
            "type": "approval",
            "name": "Procurement Officer Approval",
            "position": {"x": 100, "y": 350},
            "approval_type": "sequential",
            "min_approvals": 1,
            "timeout_hours": 24,
        },
        {
            "id": "approval-3",
            "type": "approval",
            "name": "CFO Final Approval",
            "position": {"x": 400, "y": 350},
            "approval_type": "sequential",
            "min_approvals": 1,
            "timeout_hours": 48,
        },
        {"id": "end-1", "type": "end", "name": "Request Approved", "position": {"x": 250, "y": 450}},
    ],
    "connections": [
        {"from": "start-1", "to": "approval-1"},
        {"from": "approval-1", "to": "condition-1"},
        {"from": "condition-1", "to": "approval-2", "condition": "true"},
        {"from": "condition-1", "to": "approval-3", "condition": "false"},
        {"from": "approval-2", "to": "end-1"},
        {"from": "approval-3", "to": "end-1"},
    ],
    "settings": {
        "sla_hours": 72,
        "auto_approve_below": 10000,
        "require_cfo_above": 50000,
        "allow_delegation": True,
    },
}

_FAST_TRACK = {
    "template_id": "template-fast-track",
    "name": "Fast-Track Low Value",
    "description": "Quick approval for small purchases",
    "nodes": [
        {"id": "start-2", "type": "start", "name": "Request Submitted", "position": {"x": 250, "y": 50}},
        {
            "id": "notification-1",
            "type": "notification",
            "name": "Auto-Approval Notification",
            "position": {"x": 250, "y": 150},
        },
        {"id": "end-2", "type": "end", "name": "Auto-Approved", "position": {"x": 250, "y": 250}},
    ],
    "connections": [
        {"from": "start-2", "to": "notification-1"},
        {"from": "notification-1", "to": "end-2"},
    ],
    "settings": {
        "sla_hours": 24,
        "auto_approve_below": 5000,
        "apply_to_all": True,
    },
}

_IT_HARDWARE = {
    "template_id": "template-it-hardware",
    "name": "IT Hardware Purchase",
    "description": "Specialized workflow for IT equipment",
    "nodes": [
        {"id": "start-3", "type": "start", "name": "Request Submitted", "position": {"x": 250, "y": 50}},
        {
            "id": "parallel-1",
            "type": "parallel",
            "name": "IT & Security Review",
            "position": {"x": 250, "y": 150},
            "approval_type": "parallel",
            "min_approvals": 2,
            "timeout_hours": 48,
        },
        {
            "id": "approval-4",
            "type": "approval",
            "name": "Budget Committee Approval",
            "position": {"x": 250, "y": 250},
            "approval_type": "sequential",
            "min_approvals": 1,
            "timeout_hours": 72,
        },
        {"id": "end-3", "type": "end", "name": "Approved", "position": {"x": 250, "y": 350}},
    ],
    "connections": [
        {"from": "start-3", "to": "parallel-1"},
        {"from": "parallel-1", "to": "approval-4"},
        {"from": "approval-4", "to": "end-3"},
    ],
    "settings": {
        "sla_hours": 120,
        "require_it_review": True,
        "categories": ["Computing Hardware", "Networking", "Software & Licenses"],
    },
}

# Approval nodes ship without approvers: the designer fills them in, and the
# graph validator refuses to publish until it does.
WORKFLOW_TEMPLATES: List[WorkflowTemplate] = [
    WorkflowTemplate.model_validate(_STANDARD),
    WorkflowTemplate.model_validate(_FAST_TRACK),
    WorkflowTemplate.model_validate(_IT_HARDWARE),
]


def list_templates() -> List[WorkflowTemplate]:
    """Copies of the built-in templates"""
    return [template.model_copy(deep=True) for template in WORKFLOW_TEMPLATES]
