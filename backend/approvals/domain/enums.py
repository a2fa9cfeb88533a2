"""Domain Enumerations - Node, operator and status definitions"""
from enum import Enum


class NodeType(str, Enum):
    """Types of workflow graph nodes"""
    START = "start"
    APPROVAL = "approval"
    CONDITION = "condition"
    PARALLEL = "parallel"
    NOTIFICATION = "notification"
    END = "end"


class ApprovalType(str, Enum):
    """How approvers on a node are consulted"""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    ANY = "any"


class NodeAction(str, Enum):
    """Side actions a node may request from the host"""
    NOTIFY = "notify"
    ESCALATE = "escalate"
    AUTO_APPROVE = "auto-approve"
    REJECT = "reject"


class ConditionOperator(str, Enum):
    """Operators for condition evaluation"""
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    IN = "in"
    NOT_IN = "not-in"
    REGEX = "regex"
    UNKNOWN = "unknown"  # Stored operator we do not recognise - evaluates to true

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class LogicalOperator(str, Enum):
    """Joiner between a condition and the next one in the list"""
    AND = "AND"
    OR = "OR"


class NotificationChannel(str, Enum):
    """Channels a workflow notification rule may target"""
    EMAIL = "email"
    IN_APP = "in-app"
    SMS = "sms"
    SLACK = "slack"


class NotificationTrigger(str, Enum):
    """Workflow events a notification rule fires on"""
    ON_SUBMIT = "on-submit"
    ON_APPROVE = "on-approve"
    ON_REJECT = "on-reject"
    ON_ESCALATE = "on-escalate"
    ON_TIMEOUT = "on-timeout"

