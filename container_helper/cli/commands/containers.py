"""Container inventory commands for Container Helper."""

import asyncio

import click
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from ...core.constants import POLL_INTERVAL
from ...core.inventory import (
    STATE_FILTERS,
    ContainerInventoryService,
    exec_command,
    format_created,
    format_ports,
    ssh_command,
)
from ...services.exceptions import ServiceError
from ..helpers import fail, format_container_table, get_engine, run_async


@click.group()
def containers():
    """Inspect and control containers"""
    pass


@containers.command(name='list')
@click.option('--state', type=click.Choice(STATE_FILTERS), default='all', help='Filter by state')
@click.option('--search', '-s', default='', help='Match name, image or ID (case-insensitive)')
def list_containers(state, search):
    """List containers"""
    inventory = ContainerInventoryService(get_engine())
    try:
        run_async(inventory.refresh())
    except ServiceError as e:
        fail(e)

    records = inventory.visible(state, search)
    if not records:
        click.echo("No containers found")
        return
    click.echo(format_container_table(records))


@containers.command()
@click.argument('container_id')
def show(container_id):
    """Show container details"""
    console = Console()
    inventory = ContainerInventoryService(get_engine())
    try:
        record = run_async(inventory.inspect(container_id))
    except ServiceError as e:
        fail(e)

    table = Table(title=f"Container {record.name}", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("ID", record.id)
    table.add_row("Image", record.image)
    table.add_row("State", record.state.value)
    table.add_row("Created", format_created(record.created))
    table.add_row("Ports", format_ports(record))
    table.add_row("Environment", "\n".join(record.env) or "-")
    table.add_row(
        "Mounts",
        "\n".join(f"{m.source} -> {m.destination} ({m.mode})" for m in record.mounts) or "-",
    )
    console.print(table)

    console.print(f"Shell: [green]{exec_command(record)}[/green]")
    ssh = ssh_command(record)
    if ssh:
        console.print(f"SSH:   [green]{ssh}[/green]")


def _action(container_id: str, action: str, past: str) -> None:
    inventory = ContainerInventoryService(get_engine())
    try:
        run_async(getattr(inventory, action)(container_id))
    except ServiceError as e:
        fail(e)
    click.echo(f"Container {container_id} {past}")


@containers.command()
@click.argument('container_id')
def start(container_id):
    """Start a container"""
    _action(container_id, "start", "started")


@containers.command()
@click.argument('container_id')
def stop(container_id):
    """Stop a container"""
    _action(container_id, "stop", "stopped")


@containers.command(name='rm')
@click.argument('container_id')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
def remove(container_id, yes):
    """Remove a container (running containers are force removed)"""
    console = Console()
    if not yes and not Confirm.ask(f"Remove container '{container_id}'?"):
        console.print("[yellow]Cancelled[/yellow]")
        return
    _action(container_id, "remove", "removed")


@containers.command()
@click.option('--interval', type=float, default=POLL_INTERVAL, envvar='CONTAINER_HELPER_POLL_INTERVAL',
              show_default=True, help='Seconds between polls')
@click.option('--count', type=int, default=0, help='Stop after this many refreshes (0 = until Ctrl+C)')
@click.option('--state', type=click.Choice(STATE_FILTERS), default='all', help='Filter by state')
def watch(interval, count, state):
    """Poll containers and print the list on every change"""
    inventory = ContainerInventoryService(get_engine(), interval=interval)

    async def poll():
        inventory.start_polling()
        shown = None
        refreshes = 0
        try:
            while not count or refreshes < count:
                await asyncio.sleep(interval)
                refreshes += 1
                if inventory.last_error:
                    click.echo(f"Error: {inventory.last_error}", err=True)
                    continue
                records = inventory.filter(state)
                if records != shown:
                    shown = records
                    click.echo(format_container_table(records) if records else "No containers found")
                    click.echo()
        finally:
            await inventory.close()

    try:
        run_async(poll())
    except KeyboardInterrupt:
        click.echo("Stopped watching")
