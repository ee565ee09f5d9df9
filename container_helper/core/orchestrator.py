"""Generate, build and run sequencing for one environment."""

import logging
import re
import uuid
from enum import Enum
from typing import Callable, List, Optional

from ..models.config import EnvironmentConfig
from ..models.container import RunOptions, RunRequest
from ..services.exceptions import ImageBuildError, InvalidTransitionError, ServiceError, describe_error
from .constants import FALLBACK_TAG, SSH_CONTAINER_PORT, TAG_SUFFIX
from .dockerfile_compiler import InstructionDocument

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    """Orchestrator state."""
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    GENERATE_ERROR = "generate_error"
    BUILDING = "building"
    BUILT = "built"
    BUILD_ERROR = "build_error"
    RUNNING = "running"
    RAN = "ran"
    RUN_ERROR = "run_error"


BUILDABLE_STATES = (OrchestratorState.READY, OrchestratorState.BUILD_ERROR)


def sanitize_name(name: Optional[str]) -> str:
    """Turn an environment name into an image name token.

    ``"My Env!!"`` becomes ``"my-env"``; names with nothing usable become
    the fallback token.
    """
    token = re.sub(r"[^a-z0-9_.-]", "-", (name or "").lower())
    token = re.sub(r"-+", "-", token).strip("-")
    return token or FALLBACK_TAG


def make_image_tag(name: Optional[str]) -> str:
    return sanitize_name(name) + TAG_SUFFIX


def _log_unexpected(kind: str, error: Exception) -> None:
    if not isinstance(error, ServiceError):
        logger.error(f"Unexpected error during {kind}: {error!r}", exc_info=error)


class BuildRunOrchestrator:
    """Sequences Dockerfile generation, image build and container run.

    Every configuration change goes through :meth:`generate`, which discards
    earlier results. Each call takes a request token; a completion whose token
    is no longer the latest for its kind is dropped.
    """

    def __init__(self, engine, listener: Optional[Callable[[OrchestratorState], None]] = None):
        self.engine = engine
        self.listener = listener
        self.state = OrchestratorState.IDLE
        self.config: Optional[EnvironmentConfig] = None
        self.document: Optional[InstructionDocument] = None
        self.tag: Optional[str] = None
        self.logs: List[str] = []
        self.container_id: Optional[str] = None
        self.error: Optional[str] = None
        self._tokens = {"generate": 0, "build": 0, "run": 0}

    def _issue(self, kind: str) -> int:
        self._tokens[kind] += 1
        return self._tokens[kind]

    def _is_current(self, kind: str, token: int) -> bool:
        if self._tokens[kind] != token:
            logger.debug(f"Discarding stale {kind} response (token {token})")
            return False
        return True

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state
        if self.listener:
            self.listener(state)

    async def generate(self, config: EnvironmentConfig) -> Optional[InstructionDocument]:
        """Generate the Dockerfile for a new or changed configuration.

        Returns:
            The document, or None if generation failed or was superseded
        """
        token = self._issue("generate")
        # Outstanding builds and runs belong to the previous configuration
        self._issue("build")
        self._issue("run")
        self.config = config
        self.document = None
        self.tag = None
        self.logs = []
        self.container_id = None
        self.error = None
        self._transition(OrchestratorState.GENERATING)

        try:
            text = await self.engine.generate_dockerfile(config)
        except Exception as e:
            _log_unexpected("generate", e)
            if self._is_current("generate", token):
                self.error = describe_error(e)
                self._transition(OrchestratorState.GENERATE_ERROR)
            return None

        if not self._is_current("generate", token):
            return None
        self.document = InstructionDocument(tuple(text.rstrip("\n").split("\n")))
        self._transition(OrchestratorState.READY)
        return self.document

    async def build(self, tag: Optional[str] = None) -> bool:
        """Build the generated Dockerfile into an image.

        Args:
            tag: Image tag, derived from the configuration name by default

        Returns:
            True if the image was built

        Raises:
            InvalidTransitionError: If not in READY or BUILD_ERROR
        """
        if self.state not in BUILDABLE_STATES:
            raise InvalidTransitionError(f"Cannot build while {self.state.value}")

        token = self._issue("build")
        self.tag = tag or make_image_tag(self.config.name)
        self.logs = []
        self.error = None
        self._transition(OrchestratorState.BUILDING)

        try:
            result = await self.engine.build_image(self.document.text, self.tag)
        except Exception as e:
            _log_unexpected("build", e)
            if not self._is_current("build", token):
                return False
            if isinstance(e, ImageBuildError):
                self.logs.extend(e.logs)
            self.error = describe_error(e)
            self._transition(OrchestratorState.BUILD_ERROR)
            return False

        if not self._is_current("build", token):
            return False
        self.logs.extend(result.logs)
        self.tag = result.tag
        self._transition(OrchestratorState.BUILT)
        return True

    def run_request(self, options: Optional[RunOptions] = None) -> RunRequest:
        """Build the run request for the current image."""
        options = options or RunOptions()
        name = options.name or f"{sanitize_name(self.config.name)}-{uuid.uuid4().hex[:8]}"
        port_map = {}
        if self.config.ssh_enabled:
            port_map[self.config.ssh.port] = SSH_CONTAINER_PORT
        return RunRequest(
            image_tag=self.tag,
            container_name=name,
            port_map=port_map,
            env=list(options.env),
        )

    async def run(self, options: Optional[RunOptions] = None) -> Optional[str]:
        """Start a container from the built image.

        Returns:
            Container ID, or None if the run failed or was superseded

        Raises:
            InvalidTransitionError: If not in BUILT
        """
        if self.state != OrchestratorState.BUILT:
            raise InvalidTransitionError(f"Cannot run while {self.state.value}")

        token = self._issue("run")
        request = self.run_request(options)
        self.error = None
        self._transition(OrchestratorState.RUNNING)

        try:
            container_id = await self.engine.run_container(request)
        except Exception as e:
            _log_unexpected("run", e)
            if self._is_current("run", token):
                self.error = describe_error(e)
                self._transition(OrchestratorState.RUN_ERROR)
            return None

        if not self._is_current("run", token):
            return None
        self.container_id = container_id
        self._transition(OrchestratorState.RAN)
        return container_id
