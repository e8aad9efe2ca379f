"""Application error taxonomy.

Every error carries an HTTP status code and a stable, human-readable
``error`` title; ``message`` holds the specific detail (often the upstream
service's own text).
"""

from typing import Optional


class AppError(Exception):
    status_code = 500
    default_error = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error or self.default_error


class ValidationError(AppError):
    status_code = 400
    default_error = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    default_error = "Authentication required"


class DomainNotAllowedError(AppError):
    status_code = 403
    default_error = "Domain not allowed"


class NotFoundError(AppError):
    status_code = 404
    default_error = "Not found"


class UpstreamServiceError(AppError):
    status_code = 500
    default_error = "Upstream service failure"


class RecursionLimitExceeded(AppError):
    status_code = 500
    default_error = "Agent recursion limit exceeded"

    def __init__(self, limit: int):
        super().__init__(
            f"Agent did not produce an answer within {limit} tool round trips"
        )
        self.limit = limit


class IngestionError(AppError):
    """A document ingestion stage failed; ``stage`` names which one."""

    status_code = 500
    default_error = "Failed to process PDF"

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage
