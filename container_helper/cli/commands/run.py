"""Run command for Container Helper."""

import click

from ...core.orchestrator import BuildRunOrchestrator
from ...models.container import RunOptions
from ..helpers import generate_and_build, get_engine, get_state_store, report_failure, run_async


def _parse_env(ctx, param, values):
    for value in values:
        if '=' not in value:
            raise click.BadParameter(f"'{value}' is not KEY=VALUE")
    return list(values)


@click.command()
@click.option('--name', help='Container name (defaults to environment name plus a random suffix)')
@click.option('--env', '-e', multiple=True, callback=_parse_env,
              help='Environment variable as KEY=VALUE (repeatable)')
@click.option('--tag', help='Tag for the image (defaults to the environment name)')
def run(name, env, tag):
    """Build an image from the saved configuration and start a container"""
    environment = get_state_store().get_environment_config()
    orchestrator = BuildRunOrchestrator(get_engine())

    async def build_and_run():
        if not await generate_and_build(orchestrator, environment, tag):
            return None
        click.echo(f"Image built: {orchestrator.tag}")
        return await orchestrator.run(RunOptions(name=name, env=env))

    container_id = run_async(build_and_run())
    if container_id is None:
        report_failure(orchestrator)

    click.echo(f"Container started: {container_id[:12]}")
    if environment.ssh_enabled:
        click.echo(f"Connect with: ssh -p {environment.ssh.port} root@localhost")
