"""
API Middleware Module

    - correlation: request correlation ID and access logging
    - error_handlers: exception handlers for domain, validation and database errors
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
