"""Container, build and run models."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ContainerState(str, Enum):
    """Container state as reported by the engine."""
    RUNNING = "running"
    EXITED = "exited"
    PAUSED = "paused"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ContainerState":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OTHER


class PortMapping(BaseModel):
    """Published or exposed container port."""
    private_port: int
    public_port: Optional[int] = None
    protocol: str = "tcp"


class MountInfo(BaseModel):
    """Container mount."""
    source: str = ""
    destination: str = ""
    mode: str = ""


class ContainerRecord(BaseModel):
    """Point-in-time view of a container owned by the engine."""
    id: str
    name: str
    image: str
    state: ContainerState = ContainerState.OTHER
    status: str = ""
    created: int = 0
    ports: List[PortMapping] = Field(default_factory=list)
    env: List[str] = Field(default_factory=list)
    mounts: List[MountInfo] = Field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.state == ContainerState.RUNNING

    @classmethod
    def from_summary(cls, attrs: Dict[str, Any]) -> "ContainerRecord":
        """Create from a container list entry (``GET /containers/json``)."""
        names = attrs.get("Names") or []
        name = names[0].lstrip("/") if names else ""
        ports = [
            PortMapping(
                private_port=port.get("PrivatePort", 0),
                public_port=port.get("PublicPort"),
                protocol=port.get("Type") or "tcp",
            )
            for port in attrs.get("Ports") or []
        ]
        return cls(
            id=attrs.get("Id", ""),
            name=name,
            image=attrs.get("Image", ""),
            state=ContainerState.parse(attrs.get("State")),
            status=attrs.get("Status", ""),
            created=attrs.get("Created") or 0,
            ports=ports,
        )

    @classmethod
    def from_inspect(cls, attrs: Dict[str, Any]) -> "ContainerRecord":
        """Create from a container inspect payload (``GET /containers/{id}/json``)."""
        config = attrs.get("Config") or {}
        state = (attrs.get("State") or {}).get("Status") or "unknown"

        ports = []
        network_ports = (attrs.get("NetworkSettings") or {}).get("Ports") or {}
        for key, bindings in network_ports.items():
            private, _, protocol = key.partition("/")
            for binding in bindings or []:
                host_port = binding.get("HostPort")
                ports.append(PortMapping(
                    private_port=int(private),
                    public_port=int(host_port) if host_port else None,
                    protocol=protocol or "tcp",
                ))

        mounts = [
            MountInfo(
                source=mount.get("Source", ""),
                destination=mount.get("Destination", ""),
                mode=mount.get("Mode", ""),
            )
            for mount in attrs.get("Mounts") or []
        ]

        return cls(
            id=attrs.get("Id", ""),
            name=(attrs.get("Name") or "").lstrip("/"),
            image=config.get("Image", ""),
            state=ContainerState.parse(state),
            status=state,
            created=parse_timestamp(attrs.get("Created")),
            ports=ports,
            env=config.get("Env") or [],
            mounts=mounts,
        )


_FRACTION = re.compile(r"\.(\d{6})\d*")


def parse_timestamp(value: Optional[str]) -> int:
    """Convert an engine RFC 3339 timestamp to epoch seconds, 0 when missing."""
    if not value:
        return 0
    # Engine timestamps carry nanoseconds, fromisoformat accepts microseconds
    value = _FRACTION.sub(r".\1", value).replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


@dataclass
class BuildResult:
    """Outcome of an image build."""
    tag: str
    logs: List[str] = field(default_factory=list)


@dataclass
class RunRequest:
    """Request to start a container from a built image."""
    image_tag: str
    container_name: str
    port_map: Dict[int, int] = field(default_factory=dict)  # host port -> container port
    env: List[str] = field(default_factory=list)


@dataclass
class RunOptions:
    """Caller supplied options for a run."""
    name: Optional[str] = None
    env: List[str] = field(default_factory=list)
