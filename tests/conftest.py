import pytest
from click.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock

from container_helper.models.config import EnvironmentConfig
from container_helper.models.container import BuildResult, ContainerRecord, PortMapping


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def mock_docker_client():
    """Provides a mocked Docker client."""
    mock_client = MagicMock()
    mock_client.ping.return_value = True
    mock_client.containers.list.return_value = []
    mock_client.images.list.return_value = []
    return mock_client


@pytest.fixture
def mock_engine():
    """Provides an engine whose operations are AsyncMocks."""
    engine = MagicMock()
    engine.generate_dockerfile = AsyncMock(return_value="FROM ubuntu:22.04\n\nWORKDIR /app\n\nCMD [\"/bin/bash\"]\n")
    engine.build_image = AsyncMock(
        side_effect=lambda dockerfile, tag: BuildResult(tag=tag, logs=["Step 1/2\n", "Step 2/2\n"])
    )
    engine.run_container = AsyncMock(return_value="abc123def456789")
    engine.list_containers = AsyncMock(return_value=[])
    engine.get_container = AsyncMock()
    engine.start_container = AsyncMock()
    engine.stop_container = AsyncMock()
    engine.remove_container = AsyncMock()
    engine.check_port = AsyncMock(return_value=False)
    return engine


@pytest.fixture
def python_config():
    """Ubuntu 22.04 with Python 3.11 and no SSH."""
    return EnvironmentConfig.model_validate({
        "name": "My Env!!",
        "os": {"type": "ubuntu", "version": "22.04"},
        "languages": [{"name": "python", "version": "3.11"}],
    })


@pytest.fixture
def ssh_config():
    """Alpine with Node.js and SSH on port 2222."""
    return EnvironmentConfig.model_validate({
        "name": "web",
        "os": {"type": "alpine", "version": "latest"},
        "languages": [{"name": "nodejs", "version": "20"}],
        "ssh": {"enabled": True, "port": 2222, "password": "secret123"},
    })


@pytest.fixture
def container_records():
    """A running, an exited and a paused container."""
    return [
        ContainerRecord(
            id="aaaa1111bbbb2222cccc",
            name="web-dev",
            image="web:latest",
            state="running",
            status="Up 2 hours",
            created=1700000000,
            ports=[PortMapping(private_port=22, public_port=2222)],
        ),
        ContainerRecord(
            id="dddd3333eeee4444ffff",
            name="Python-Sandbox",
            image="python:3.11",
            state="exited",
            status="Exited (0) 3 days ago",
            created=1690000000,
        ),
        ContainerRecord(
            id="9999888877776666",
            name="cache",
            image="redis:alpine",
            state="paused",
            status="Up 1 hour (Paused)",
            created=1695000000,
            ports=[PortMapping(private_port=6379)],
        ),
    ]


@pytest.fixture
def isolated_cli_runner(cli_runner):
    """Provides a CLI runner with isolated filesystem."""
    with cli_runner.isolated_filesystem():
        yield cli_runner
