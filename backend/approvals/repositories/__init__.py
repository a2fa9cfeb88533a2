"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes, close_connection, health_check
from .workflow_repo import WorkflowRepository
from .requisition_repo import RequisitionRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "close_connection",
    "health_check",
    "WorkflowRepository",
    "RequisitionRepository",
]
