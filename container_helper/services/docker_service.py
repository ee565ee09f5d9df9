"""Docker service for abstracting Docker operations."""

import io
import logging
import tarfile
from typing import Any, Iterable, Optional

import docker
import docker.errors
import requests.exceptions
from docker.models.containers import Container

from ..models.container import BuildResult, ContainerRecord, RunRequest
from .exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageBuildError,
    ImageNotFoundError,
    TransportError,
)

logger = logging.getLogger(__name__)


class DockerService:
    """Service for Docker operations with clean abstractions."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize Docker service and test connection."""
        if client is not None:
            self.client = client
            return
        try:
            self.client = docker.from_env()
            self.client.ping()
        except docker.errors.DockerException as e:
            if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                raise TransportError(
                    "Docker daemon is not running. Please start Docker Desktop or the Docker service."
                ) from e
            else:
                raise DockerServiceError(f"Failed to connect to Docker: {e}") from e

    def build_image(
        self,
        dockerfile: str,
        tag: str,
        nocache: bool = False,
        pull: bool = True,
    ) -> BuildResult:
        """Build a Docker image from Dockerfile text.

        The build context holds only the Dockerfile.

        Args:
            dockerfile: Dockerfile content
            tag: Tag for the image
            nocache: Do not use cache when building
            pull: Always pull the base image

        Returns:
            Build result with the ordered log chunks

        Raises:
            ImageBuildError: If the build fails, with the logs collected so far
            TransportError: If the daemon cannot be reached
        """
        try:
            _, chunks = self.client.images.build(
                fileobj=self._create_dockerfile_tar(dockerfile),
                custom_context=True,
                tag=tag,
                rm=True,
                nocache=nocache,
                pull=pull,
            )
            logs = _stream_lines(chunks)
            for line in logs:
                logger.debug(f"Build: {line.rstrip()}")
            return BuildResult(tag=tag, logs=logs)
        except docker.errors.BuildError as e:
            raise ImageBuildError(
                f"Build failed: {e.msg}", logs=_stream_lines(e.build_log)
            ) from e
        except docker.errors.APIError as e:
            raise ImageBuildError(
                f"Failed to build image: {e.explanation or e}", status_code=e.status_code
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Lost connection to Docker: {e}") from e
        except Exception as e:
            raise ImageBuildError(f"Unexpected error building image: {e}") from e

    def run_container(self, request: RunRequest) -> str:
        """Create and start a detached container.

        Args:
            request: Image, name, port bindings and environment

        Returns:
            ID of the started container

        Raises:
            ImageNotFoundError: If image not found
            DockerServiceError: If run fails
            TransportError: If the daemon cannot be reached
        """
        ports = {
            f"{container_port}/tcp": host_port
            for host_port, container_port in request.port_map.items()
        }
        try:
            container = self.client.containers.run(
                image=request.image_tag,
                name=request.container_name,
                ports=ports or None,
                environment=request.env or None,
                detach=True,
            )
            return container.id
        except docker.errors.ImageNotFound as e:
            raise ImageNotFoundError(f"Image '{request.image_tag}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(
                f"Failed to run container: {e.explanation or e}", status_code=e.status_code
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Lost connection to Docker: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error running container: {e}") from e

    def list_containers(self, all: bool = True) -> list[ContainerRecord]:
        """List containers.

        Args:
            all: Include stopped containers

        Returns:
            List of container records

        Raises:
            DockerServiceError: If listing fails
            TransportError: If the daemon cannot be reached
        """
        try:
            containers = self.client.containers.list(all=all, sparse=True)
            return [ContainerRecord.from_summary(c.attrs) for c in containers]
        except docker.errors.APIError as e:
            raise DockerServiceError(
                f"Failed to list containers: {e.explanation or e}", status_code=e.status_code
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Lost connection to Docker: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error listing containers: {e}") from e

    def get_container(self, container_id: str) -> ContainerRecord:
        """Get a container with its environment and mounts.

        Args:
            container_id: Container ID or name

        Returns:
            Container record

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If retrieval fails
        """
        return ContainerRecord.from_inspect(self._get(container_id).attrs)

    def start_container(self, container_id: str) -> None:
        """Start a stopped container."""
        self._call(container_id, "start", lambda c: c.start())

    def stop_container(self, container_id: str) -> None:
        """Stop a running container."""
        self._call(container_id, "stop", lambda c: c.stop())

    def remove_container(self, container_id: str, force: bool = True) -> None:
        """Remove a container.

        Args:
            container_id: Container ID or name
            force: Force remove even if running

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If removal fails
        """
        self._call(container_id, "remove", lambda c: c.remove(force=force))

    def is_port_in_use(self, port: int) -> bool:
        """Check whether a running container publishes the given host port."""
        for container in self.list_containers():
            if not container.is_running:
                continue
            if any(mapping.public_port == port for mapping in container.ports):
                return True
        return False

    def _get(self, container_id: str) -> Container:
        try:
            return self.client.containers.get(container_id)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(
                f"Container '{container_id}' not found"
            ) from e
        except docker.errors.APIError as e:
            raise DockerServiceError(
                f"Failed to get container: {e.explanation or e}", status_code=e.status_code
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Lost connection to Docker: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error getting container: {e}") from e

    def _call(self, container_id: str, action: str, operation) -> Any:
        container = self._get(container_id)
        try:
            return operation(container)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(
                f"Container '{container_id}' not found"
            ) from e
        except docker.errors.APIError as e:
            raise DockerServiceError(
                f"Failed to {action} container: {e.explanation or e}", status_code=e.status_code
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Lost connection to Docker: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error trying to {action} container: {e}") from e

    @staticmethod
    def _create_dockerfile_tar(dockerfile: str) -> io.BytesIO:
        """Create an in-memory build context holding only the Dockerfile."""
        content = dockerfile.encode("utf-8")
        tar_stream = io.BytesIO()
        with tarfile.open(fileobj=tar_stream, mode='w') as tar:
            info = tarfile.TarInfo(name="Dockerfile")
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))

        tar_stream.seek(0)
        return tar_stream


def _stream_lines(chunks: Optional[Iterable[dict]]) -> list[str]:
    """Extract the ``stream`` entries of build output in order."""
    return [chunk["stream"] for chunk in chunks or [] if isinstance(chunk, dict) and "stream" in chunk]
