"""Async engine collaborator used by the orchestrator, inventory and port checker."""

import asyncio
import logging
import threading
from typing import List, Optional, Protocol

from ..core.dockerfile_compiler import compile_dockerfile, validate_for_generation
from ..models.config import EnvironmentConfig
from ..models.container import BuildResult, ContainerRecord, RunRequest
from .docker_service import DockerService

logger = logging.getLogger(__name__)


class Engine(Protocol):
    """Operations the core needs from a container engine."""

    async def generate_dockerfile(self, config: EnvironmentConfig) -> str: ...

    async def build_image(self, dockerfile: str, tag: str) -> BuildResult: ...

    async def run_container(self, request: RunRequest) -> str: ...

    async def list_containers(self) -> List[ContainerRecord]: ...

    async def get_container(self, container_id: str) -> ContainerRecord: ...

    async def start_container(self, container_id: str) -> None: ...

    async def stop_container(self, container_id: str) -> None: ...

    async def remove_container(self, container_id: str) -> None: ...

    async def check_port(self, port: int) -> bool: ...


class DockerEngine:
    """Engine backed by the local Docker daemon.

    Docker SDK calls block, so each one runs in a worker thread and the event
    loop stays free for timers and other requests.
    """

    def __init__(self, docker_service: Optional[DockerService] = None):
        self._docker_service = docker_service
        self._connect_lock = threading.Lock()

    @property
    def docker_service(self) -> DockerService:
        # Connect lazily so generation works without a daemon
        with self._connect_lock:
            if self._docker_service is None:
                self._docker_service = DockerService()
        return self._docker_service

    async def _call(self, method: str, *args):
        # Resolved in the worker thread so connecting never blocks the loop
        return await asyncio.to_thread(lambda: getattr(self.docker_service, method)(*args))

    async def generate_dockerfile(self, config: EnvironmentConfig) -> str:
        validate_for_generation(config)
        document = compile_dockerfile(config)
        logger.debug(f"Generated Dockerfile:\n{document.text}")
        return document.text

    async def build_image(self, dockerfile: str, tag: str) -> BuildResult:
        logger.info(f"Building image {tag}")
        return await self._call("build_image", dockerfile, tag)

    async def run_container(self, request: RunRequest) -> str:
        logger.info(f"Running container {request.container_name} from {request.image_tag}")
        return await self._call("run_container", request)

    async def list_containers(self) -> List[ContainerRecord]:
        return await self._call("list_containers")

    async def get_container(self, container_id: str) -> ContainerRecord:
        return await self._call("get_container", container_id)

    async def start_container(self, container_id: str) -> None:
        await self._call("start_container", container_id)

    async def stop_container(self, container_id: str) -> None:
        await self._call("stop_container", container_id)

    async def remove_container(self, container_id: str) -> None:
        await self._call("remove_container", container_id)

    async def check_port(self, port: int) -> bool:
        return await self._call("is_port_in_use", port)
