"""Build command for Container Helper."""

import click

from ...core.orchestrator import BuildRunOrchestrator
from ..helpers import generate_and_build, get_engine, get_state_store, report_failure, run_async


@click.command()
@click.option('--tag', help='Tag for the image (defaults to the environment name)')
def build(tag):
    """Build an image from the saved configuration"""
    environment = get_state_store().get_environment_config()
    orchestrator = BuildRunOrchestrator(get_engine())

    if not run_async(generate_and_build(orchestrator, environment, tag)):
        report_failure(orchestrator)

    click.echo(f"Image built: {orchestrator.tag}")
