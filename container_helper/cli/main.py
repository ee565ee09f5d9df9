"""Main CLI entry point for Container Helper."""

import logging

import click

from .commands.build import build
from .commands.config import config
from .commands.containers import containers
from .commands.generate import generate
from .commands.port_check import port_check
from .commands.run import run


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """Container Helper - Build and run development environment containers"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


# Register commands
cli.add_command(config)
cli.add_command(generate)
cli.add_command(build)
cli.add_command(run)
cli.add_command(port_check)
cli.add_command(containers)


if __name__ == '__main__':
    cli()
