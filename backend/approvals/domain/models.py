"""Domain Models - Pydantic schemas for workflows, graph parts and subjects"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator, model_validator
)

from .enums import (
    NodeType, ApprovalType, NodeAction, ConditionOperator, LogicalOperator,
    NotificationChannel, NotificationTrigger
)


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from JWT token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="User ID in the back office")
    company_id: Optional[str] = Field(None, description="Tenant the user belongs to")
    email: Optional[EmailStr] = Field(None, description="User email")
    display_name: Optional[str] = Field(None, description="User display name")
    role: Optional[str] = Field(None, description="Back office role")


class Approver(BaseModel):
    """Approver reference on an approval/parallel node"""
    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("user_id", "userId"), description="User reference"
    )
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[str] = None


# ============================================================================
# Conditions
# ============================================================================

class Condition(BaseModel):
    """
    Single predicate: subject[field] <operator> value

    `logical_operator` joins this condition to the *next* one in its list.
    Used both for condition nodes and for workflow trigger conditions.
    """
    model_config = ConfigDict(extra="ignore")

    field: str = Field(..., description="Subject field to evaluate")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Value to compare against")
    logical_operator: LogicalOperator = Field(
        default=LogicalOperator.AND,
        validation_alias=AliasChoices("logical_operator", "logicalOperator"),
    )
    # Operator text as written when it is not one we evaluate
    raw_operator: Optional[str] = Field(None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _keep_unrecognised_operator(cls, data: Any) -> Any:
        if isinstance(data, dict):
            operator = data.get("operator")
            if (
                isinstance(operator, str)
                and not isinstance(operator, ConditionOperator)
                and ConditionOperator(operator) is ConditionOperator.UNKNOWN
                and operator != ConditionOperator.UNKNOWN.value
            ):
                data = {**data, "raw_operator": operator}
        return data

    @field_serializer("operator")
    def _operator_as_written(self, operator: ConditionOperator):
        if operator is ConditionOperator.UNKNOWN and self.raw_operator:
            return self.raw_operator
        return operator


# ============================================================================
# Graph
# ============================================================================

class WorkflowNode(BaseModel):
    """
    One vertex of a workflow graph

    id, type and name are optional here so the graph validator, not the
    parser, reports when they are missing.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: Optional[NodeType] = None
    name: Optional[str] = None
    description: Optional[str] = None
    position: Optional[Dict[str, float]] = Field(None, description="Designer canvas coordinates")
    # approval / parallel
    approvers: List[Approver] = Field(default_factory=list)
    approval_type: ApprovalType = Field(
        default=ApprovalType.SEQUENTIAL,
        validation_alias=AliasChoices("approval_type", "approvalType"),
    )
    min_approvals: Optional[int] = Field(
        default=1, validation_alias=AliasChoices("min_approvals", "minApprovals")
    )
    # condition
    conditions: List[Condition] = Field(default_factory=list)
    true_branch: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("true_branch", "trueBranch"),
        description="Node ID taken when conditions hold",
    )
    false_branch: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("false_branch", "falseBranch"),
        description="Node ID taken otherwise",
    )
    # all node types
    timeout_hours: Optional[float] = Field(
        default=24, validation_alias=AliasChoices("timeout_hours", "timeoutHours")
    )
    escalation_to: Optional[str] = Field(
        None, validation_alias=AliasChoices("escalation_to", "escalationTo")
    )
    is_mandatory: bool = Field(default=True, validation_alias=AliasChoices("is_mandatory", "isMandatory"))
    can_delegate: bool = Field(default=True, validation_alias=AliasChoices("can_delegate", "canDelegate"))
    actions: List[NodeAction] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("approvers", mode="before")
    @classmethod
    def _approver_ids(cls, value: Any) -> Any:
        """Accept bare user IDs as approvers"""
        if isinstance(value, list):
            return [{"user_id": item} if isinstance(item, str) else item for item in value]
        return value


class WorkflowConnection(BaseModel):
    """Directed edge between two node IDs"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    from_node: Optional[str] = Field(None, alias="from", description="Source node ID")
    to: Optional[str] = Field(None, description="Target node ID")
    condition: Optional[str] = Field(None, description="Branch label: 'true', 'false' or custom")
    order: Optional[int] = Field(None, description="Designer ordering hint, not used for routing")


# ============================================================================
# Workflow
# ============================================================================

class NotificationRule(BaseModel):
    """Who the host should notify on workflow events (never sent by the engine)"""
    model_config = ConfigDict(extra="ignore")

    channel: NotificationChannel = Field(
        default=NotificationChannel.EMAIL,
        validation_alias=AliasChoices("channel", "type"),
    )
    template: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)
    triggers: List[NotificationTrigger] = Field(default_factory=list)


class WorkflowStatistics(BaseModel):
    """Usage counters maintained by the requisition side"""
    total_requests: int = 0
    avg_approval_time: Optional[float] = Field(None, description="Hours")
    completion_rate: Optional[float] = Field(None, description="Percentage")
    last_used: Optional[datetime] = None


class ApprovalWorkflow(BaseModel):
    """Approval workflow definition owned by one company"""
    model_config = ConfigDict(extra="ignore")

    workflow_id: str = Field(..., description="Unique workflow ID")
    company_id: str = Field(..., description="Owning tenant")
    code: Optional[str] = Field(None, description="Human facing code, unique per company")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    is_active: bool = Field(default=True)
    is_draft: bool = Field(default=False)
    priority: int = Field(default=5, ge=1, le=10, description="Lower wins when several workflows apply")
    version: str = Field(default="1.0", description="Decimal string bumped by 0.1 on publish")
    published_at: Optional[datetime] = None

    # Scope
    apply_to_all: bool = Field(default=False)
    departments: List[str] = Field(default_factory=list, description="Department IDs")
    department_codes: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)

    # Eligibility
    min_amount: float = Field(default=0, ge=0)
    max_amount: Optional[float] = Field(None, ge=0)
    trigger_conditions: List[Condition] = Field(default_factory=list)

    # Graph
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: List[WorkflowConnection] = Field(default_factory=list)

    # Policy
    sla_hours: int = Field(default=72, ge=1)
    auto_approve_below: Optional[float] = Field(None, ge=0)
    require_cfo_above: Optional[float] = Field(default=500000, ge=0)
    require_legal_review: bool = Field(default=False)
    require_it_review: bool = Field(default=False)
    allow_delegation: bool = Field(default=True)
    notifications: List[NotificationRule] = Field(default_factory=list)

    statistics: WorkflowStatistics = Field(default_factory=WorkflowStatistics)

    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    def get_node(self, node_id: Optional[str]) -> Optional[WorkflowNode]:
        """First node with the given ID"""
        return next((n for n in self.nodes if n.id == node_id), None)


# ============================================================================
# Subject & Path
# ============================================================================

class RequisitionSubject(BaseModel):
    """
    Requisition-like record a workflow is matched and walked against

    Extra named fields are kept so conditions can reference them.
    """
    model_config = ConfigDict(extra="allow")

    department: Optional[str] = Field(
        None, validation_alias=AliasChoices("department", "departmentId", "department_id")
    )
    department_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("department_code", "departmentCode")
    )
    category: Optional[str] = None
    estimated_cost: Optional[float] = Field(
        None, validation_alias=AliasChoices("estimated_cost", "estimatedCost", "cost")
    )

    def as_context(self) -> Dict[str, Any]:
        """Field values keyed by every accepted spelling"""
        context = self.model_dump()
        context.setdefault("departmentCode", self.department_code)
        context.setdefault("estimatedCost", self.estimated_cost)
        context.setdefault("cost", self.estimated_cost)
        return context


class PathStep(BaseModel):
    """One visited node on a computed approval path"""
    node_id: Optional[str]
    node_name: Optional[str]
    node_type: Optional[NodeType]
    approvers: List[Approver] = Field(default_factory=list)
    conditions: List[Condition] = Field(default_factory=list)


class ApprovalPathResult(BaseModel):
    """Dry run of a workflow against a subject"""
    applies: bool
    approval_path: List[PathStep] = Field(default_factory=list)
    estimated_steps: int = 0
    sla_hours: int
    auto_approve: bool = False


class WorkflowTemplate(BaseModel):
    """Built-in starter graph offered to workflow designers"""
    template_id: str
    name: str
    description: Optional[str] = None
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: List[WorkflowConnection] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
