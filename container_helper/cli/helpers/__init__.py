"""CLI Helper Functions for Container Helper.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Project context and state store access
- Engine construction
- Running coroutines from synchronous click commands
- Consistent error output and table formatting
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, NoReturn, Optional, Sequence

import click
from pydantic import ValidationError
from tabulate import tabulate

from container_helper.core.constants import DATA_DIR_NAME
from container_helper.core.inventory import format_created, format_ports, truncate_id
from container_helper.core.orchestrator import BuildRunOrchestrator, OrchestratorState, make_image_tag
from container_helper.models.config import EnvironmentConfig
from container_helper.models.container import ContainerRecord
from container_helper.services.engine import DockerEngine
from container_helper.services.exceptions import describe_error
from container_helper.utils.config_manager import WizardStateStore


def get_project_context() -> tuple[Path, Path]:
    """Get project root and data directory.

    Returns:
        Tuple of (project_root, data_dir)
    """
    project_root = Path.cwd()
    data_dir = project_root / DATA_DIR_NAME
    return project_root, data_dir


def get_state_store() -> WizardStateStore:
    """Create the state store for the current project."""
    _, data_dir = get_project_context()
    return WizardStateStore(data_dir)


def get_engine() -> DockerEngine:
    """Create the Docker engine. The daemon connection is made on first use."""
    return DockerEngine()


def run_async(coro: Coroutine) -> Any:
    """Run a coroutine to completion from a click command."""
    return asyncio.run(coro)


def fail(error: Exception) -> NoReturn:
    """Print an error the way users should see it and exit."""
    click.echo(f"Error: {describe_error(error)}", err=True)
    sys.exit(1)


def validation_message(error: ValidationError) -> str:
    """First readable message of a pydantic validation error."""
    details = error.errors()
    if not details:
        return str(error)
    message = details[0]["msg"]
    # pydantic prefixes errors raised from validators
    return message.removeprefix("Value error, ")


def update_config(store: WizardStateStore, change) -> EnvironmentConfig:
    """Apply a change to the saved configuration and save the result.

    Exits with an error if the changed configuration is invalid.
    """
    try:
        config = change(store.get_environment_config())
    except ValidationError as e:
        click.echo(f"Error: {validation_message(e)}", err=True)
        sys.exit(1)
    store.save_environment_config(config)
    return config


async def generate_and_build(orchestrator: BuildRunOrchestrator, config: EnvironmentConfig,
                             tag: Optional[str] = None) -> bool:
    """Generate the Dockerfile then build it, echoing build output.

    Returns:
        True if the image was built
    """
    if await orchestrator.generate(config) is None:
        return False
    click.echo(f"Building image {tag or make_image_tag(config.name)}...")
    built = await orchestrator.build(tag)
    for line in orchestrator.logs:
        click.echo(line, nl=False)
    return built


def report_failure(orchestrator: BuildRunOrchestrator) -> NoReturn:
    """Print the orchestrator error for the failed step and exit."""
    step = {
        OrchestratorState.GENERATE_ERROR: "Generation failed",
        OrchestratorState.BUILD_ERROR: "Build failed",
        OrchestratorState.RUN_ERROR: "Run failed",
    }.get(orchestrator.state, "Failed")
    click.echo(f"{step}: {orchestrator.error}", err=True)
    sys.exit(1)


def format_container_table(records: Sequence[ContainerRecord],
                           tablefmt: str = "simple") -> str:
    """Format containers as a table with consistent styling."""
    headers = ["ID", "Name", "Image", "State", "Status", "Ports", "Created"]
    rows = [
        [
            truncate_id(record.id),
            record.name,
            record.image,
            click.style(record.state.value, fg=_state_color(record.state.value)),
            record.status,
            format_ports(record),
            format_created(record.created),
        ]
        for record in records
    ]
    return tabulate(rows, headers=headers, tablefmt=tablefmt)


def _state_color(state: str) -> str:
    return {"running": "green", "exited": "white", "paused": "yellow"}.get(state, "blue")
