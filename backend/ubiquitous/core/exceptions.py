"""
Domain exceptions raised by services and mapped to HTTP responses by the API layer
"""
from typing import Any, Optional

from fastapi import status


class UbiquitousError(Exception):
    """Base class for errors that carry an HTTP status"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(UbiquitousError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f'{resource} with ID "{identifier}" not found')
        self.resource = resource
        self.identifier = identifier


class ConflictError(UbiquitousError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource: str, name: str, scope: Optional[str] = None):
        message = f'{resource} with "{name}" already exists'
        if scope:
            message = f"{message} in {scope}"
        super().__init__(message)
        self.resource = resource
        self.name = name


class ValidationError(UbiquitousError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(UbiquitousError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(UbiquitousError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class ExternalServiceError(UbiquitousError):
    """An external dependency (LLM, search engine) returned an error"""
    status_code = status.HTTP_502_BAD_GATEWAY


class ServiceUnavailableError(UbiquitousError):
    """An external dependency is not configured or unreachable"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
