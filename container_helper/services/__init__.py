"""Service layer for abstracting Docker operations."""

from .docker_service import DockerService
from .exceptions import (
    ServiceError,
    CollaboratorError,
    DockerServiceError,
    ImageNotFoundError,
    ContainerNotFoundError,
    ImageBuildError,
    ConfigValidationError,
    TransportError,
    InvalidTransitionError,
    describe_error,
)

__all__ = [
    "DockerService",
    "ServiceError",
    "CollaboratorError",
    "DockerServiceError",
    "ImageNotFoundError",
    "ContainerNotFoundError",
    "ImageBuildError",
    "ConfigValidationError",
    "TransportError",
    "InvalidTransitionError",
    "describe_error",
]
