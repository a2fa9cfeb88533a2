"""
Domain Errors - Approval workflow exception hierarchy

Each error carries the HTTP status and machine-readable code the API
renders it with:

    400  ValidationError, WorkflowValidationError
    401  AuthenticationError
    403  PermissionDeniedError
    404  NotFoundError, WorkflowNotFoundError
    409  ConflictError and subclasses (duplicates, scope, in use, state)
    422  MaxStepsExceededError
    500  EngineError
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base of every error the workflow service raises on purpose"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Error body of the API envelope"""
        return {"code": self.error_code, "message": self.message, "details": self.details}


class AuthenticationError(DomainError):
    """Bearer token missing, malformed or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class PermissionDeniedError(DomainError):
    """Caller's role may not manage approval workflows"""
    error_code = "PERMISSION_DENIED"
    http_status = 403


class ValidationError(DomainError):
    """Caller input rejected before anything is stored"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class WorkflowValidationError(ValidationError):
    """Workflow graph failed structural validation"""
    error_code = "WORKFLOW_VALIDATION_ERROR"


class NotFoundError(DomainError):
    error_code = "NOT_FOUND"
    http_status = 404


class WorkflowNotFoundError(NotFoundError):
    """No workflow with this ID in the caller's company"""
    error_code = "WORKFLOW_NOT_FOUND"


class ConflictError(DomainError):
    error_code = "CONFLICT"
    http_status = 409


class AlreadyExistsError(ConflictError):
    """Workflow ID or code already stored"""
    error_code = "ALREADY_EXISTS"


class DuplicateNameError(AlreadyExistsError):
    """A published workflow with this name already exists in the company"""
    error_code = "DUPLICATE_WORKFLOW_NAME"


class ScopeConflictError(ConflictError):
    """Another active workflow already covers the same scope"""
    error_code = "SCOPE_CONFLICT"


class WorkflowInUseError(ConflictError):
    """Requisitions still reference the workflow"""
    error_code = "WORKFLOW_IN_USE"


class InvalidStateError(ConflictError):
    """Lifecycle action not valid for a draft/published workflow"""
    error_code = "INVALID_STATE"


class EngineError(DomainError):
    """Path computation failed"""
    error_code = "ENGINE_ERROR"
    http_status = 500


class MaxStepsExceededError(EngineError):
    """Path walk revisited a node: the graph loops for this subject"""
    error_code = "MAX_STEPS_EXCEEDED"
    http_status = 422
