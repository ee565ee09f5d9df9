"""Generate command for Container Helper."""

import click

from ...core.orchestrator import BuildRunOrchestrator
from ..helpers import get_engine, get_state_store, report_failure, run_async


@click.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True),
              help='Write the Dockerfile to a file instead of stdout')
def generate(output):
    """Generate a Dockerfile from the saved configuration"""
    environment = get_state_store().get_environment_config()
    orchestrator = BuildRunOrchestrator(get_engine())

    document = run_async(orchestrator.generate(environment))
    if document is None:
        report_failure(orchestrator)

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(document.text)
        click.echo(f"Dockerfile written to {output}")
    else:
        click.echo(document.text, nl=False)
