"""Approval workflow request models"""
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field

from ...domain.models import Condition, NotificationRule, WorkflowConnection, WorkflowNode


class CreateWorkflowRequest(BaseModel):
    """Request to create a workflow; omitted fields take the workflow defaults"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: bool = True
    is_draft: bool = True
    priority: int = Field(5, ge=1, le=10)

    apply_to_all: bool = False
    departments: List[str] = Field(default_factory=list)
    department_codes: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    min_amount: float = Field(0, ge=0)
    max_amount: Optional[float] = Field(None, ge=0)
    trigger_conditions: List[Condition] = Field(default_factory=list)

    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: List[WorkflowConnection] = Field(default_factory=list)

    sla_hours: int = Field(72, ge=1)
    auto_approve_below: Optional[float] = Field(None, ge=0)
    require_cfo_above: Optional[float] = Field(None, ge=0)
    require_legal_review: bool = False
    require_it_review: bool = False
    allow_delegation: bool = True
    notifications: List[NotificationRule] = Field(default_factory=list)


class UpdateWorkflowRequest(BaseModel):
    """Partial update; only fields present in the body are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None
    is_draft: Optional[bool] = None
    priority: Optional[int] = Field(None, ge=1, le=10)

    apply_to_all: Optional[bool] = None
    departments: Optional[List[str]] = None
    department_codes: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    min_amount: Optional[float] = Field(None, ge=0)
    max_amount: Optional[float] = Field(None, ge=0)
    trigger_conditions: Optional[List[Condition]] = None

    nodes: Optional[List[WorkflowNode]] = None
    connections: Optional[List[WorkflowConnection]] = None

    sla_hours: Optional[int] = Field(None, ge=1)
    auto_approve_below: Optional[float] = Field(None, ge=0)
    require_cfo_above: Optional[float] = Field(None, ge=0)
    require_legal_review: Optional[bool] = None
    require_it_review: Optional[bool] = None
    allow_delegation: Optional[bool] = None
    notifications: Optional[List[NotificationRule]] = None


class CloneWorkflowRequest(BaseModel):
    """Optional overrides for the copy"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)


class WorkflowTestRequest(BaseModel):
    """Sample requisition to dry run a workflow with"""
    test_data: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("test_data", "testData"),
    )
