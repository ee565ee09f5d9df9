"""Custom exceptions for service layer."""

from typing import List, Optional

TRANSPORT_ERROR_MESSAGE = "Unable to reach the container engine. Please try again."


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class CollaboratorError(ServiceError):
    """Exception raised when the engine answers with a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DockerServiceError(CollaboratorError):
    """Exception raised for Docker service operations."""

    pass


class ImageNotFoundError(DockerServiceError):
    """Exception raised when a Docker image is not found."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ContainerNotFoundError(DockerServiceError):
    """Exception raised when a Docker container is not found."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ImageBuildError(DockerServiceError):
    """Exception raised when an image build fails.

    Carries the log chunks produced before the failure.
    """

    def __init__(self, message: str, logs: Optional[List[str]] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.logs = list(logs or [])


class ConfigValidationError(CollaboratorError):
    """Exception raised when a configuration cannot be turned into a Dockerfile."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class TransportError(ServiceError):
    """Exception raised when no response was received from the engine."""

    pass


class InvalidTransitionError(ServiceError):
    """Exception raised when an action is not allowed in the current state."""

    pass


def describe_error(error: Exception) -> str:
    """Return the message to show a user for an error.

    Anything outside the service error tree is reported like a transport
    failure.
    """
    if isinstance(error, CollaboratorError):
        return error.message
    if isinstance(error, ServiceError) and not isinstance(error, TransportError):
        return str(error)
    return TRANSPORT_ERROR_MESSAGE
