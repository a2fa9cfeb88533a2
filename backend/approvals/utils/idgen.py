"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Examples:
        >>> generate_id('WF')
        'WF-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_workflow_id() -> str:
    """Generate workflow ID"""
    return generate_id("WF")


def generate_workflow_code(existing_count: int) -> str:
    """
    Human facing workflow code, sequential per company

    Args:
        existing_count: Number of workflows the company already owns

    Returns:
        Code like 'WF-0001'
    """
    return f"WF-{existing_count + 1:04d}"


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
