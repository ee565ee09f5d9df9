"""Port check command for Container Helper."""

import click

from ...core.port_checker import PortAvailabilityChecker
from ..helpers import get_engine, run_async


@click.command(name='port-check')
@click.argument('port', type=click.IntRange(1, 65535))
def port_check(port):
    """Check whether a host port is already published by a running container"""
    checker = PortAvailabilityChecker(get_engine(), quiet_period=0)

    async def check():
        checker.check_port(port)
        await checker.wait()

    run_async(check())
    if checker.in_use:
        click.echo(f"Port {port} is in use by a running container")
    else:
        click.echo(f"Port {port} is available")
