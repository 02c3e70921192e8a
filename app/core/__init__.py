"""
核心功能包
"""

from .exceptions import (
    MeetAIException,
    AuthenticationException,
    ValidationException,
    ResourceNotFoundException,
    UpstreamServiceException,
    AIServiceException,
    DatabaseException,
    ConfigurationException
)

from .logging import (
    setup_logging,
    get_logger,
    api_logger,
    webhook_logger,
    ai_logger,
    job_logger,
    db_logger
)

from .middleware import (
    RequestLoggingMiddleware,
    meetai_exception_handler
)

__all__ = [
    # Exceptions
    "MeetAIException",
    "AuthenticationException",
    "ValidationException",
    "ResourceNotFoundException",
    "UpstreamServiceException",
    "AIServiceException",
    "DatabaseException",
    "ConfigurationException",

    # Logging
    "setup_logging",
    "get_logger",
    "api_logger",
    "webhook_logger",
    "ai_logger",
    "job_logger",
    "db_logger",

    # Middleware
    "RequestLoggingMiddleware",
    "meetai_exception_handler",
]
