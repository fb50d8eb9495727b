from __future__ import annotations


class ServiceError(Exception):
    """Base class for failures that map onto an error envelope."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed or out-of-range input."""

    status_code = 400


class ConflictError(ServiceError):
    """The write would break a uniqueness rule (running session, favorite)."""

    status_code = 400


class NotFoundError(ServiceError):
    """Entity is absent or not owned by the caller."""

    status_code = 404


class InvalidStateError(ServiceError):
    """Operation is not allowed in the entity's current status."""

    status_code = 400


class UpstreamError(ServiceError):
    """Content generator, LLM provider or storage failure."""

    status_code = 500
