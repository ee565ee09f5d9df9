"""Configuration management commands for Container Helper."""

import json

import click

from ...core.constants import DEFAULT_SSH_PORT, LANGUAGE_VERSIONS, OS_VERSIONS
from ...models.config import SshAccessConfig
from ...utils.config_manager import default_environment
from ..helpers import get_state_store, update_config


@click.group()
def config():
    """Manage environment configuration"""
    pass


@config.command()
def show():
    """Display current environment configuration"""
    store = get_state_store()
    snapshot = store.load()
    if not snapshot:
        click.echo("No environment configuration found (defaults shown)")
    environment = store.get_environment_config()

    data = environment.model_dump()
    if environment.ssh and environment.ssh.password:
        data["ssh"]["password"] = "*" * len(environment.ssh.password)
    click.echo("Environment Configuration:")
    click.echo(json.dumps(data, indent=2))


@config.command()
@click.argument('name')
def name(name):
    """Set the environment name (used for the image tag)"""
    update_config(get_state_store(), lambda c: c.with_name(name))
    click.echo(f"Set environment name: {name}")


@config.command(name='os')
@click.argument('os_type', type=click.Choice(sorted(OS_VERSIONS)))
@click.argument('version')
def set_os(os_type, version):
    """Set base operating system and version"""
    update_config(get_state_store(), lambda c: c.with_os(os_type, version))
    click.echo(f"Set OS to {os_type} {version}")


@config.command()
@click.argument('language', type=click.Choice(sorted(LANGUAGE_VERSIONS)))
@click.argument('version')
def language(language, version):
    """Add or update a language runtime"""
    update_config(get_state_store(), lambda c: c.with_language(language, version))
    click.echo(f"Set {language} version to {version}")


@config.command(name='remove-language')
@click.argument('language')
def remove_language(language):
    """Remove a language runtime"""
    update_config(get_state_store(), lambda c: c.without_language(language))
    click.echo(f"Removed {language}")


@config.command()
@click.option('--port', type=int, help=f'Host port for SSH (default {DEFAULT_SSH_PORT})')
@click.option('--password', help='Root password (at least 6 characters)')
@click.option('--public-key', help='Public key to authorize for root')
@click.option('--disable', is_flag=True, help='Disable the SSH server')
def ssh(port, password, public_key, disable):
    """Enable and configure the SSH server"""
    store = get_state_store()

    def change(environment):
        if disable:
            return environment.with_ssh(None)
        current = environment.ssh or SshAccessConfig()
        return environment.with_ssh(SshAccessConfig(
            enabled=True,
            port=port if port is not None else current.port,
            password=password if password is not None else current.password,
            public_key=public_key if public_key is not None else current.public_key,
        ))

    environment = update_config(store, change)
    if environment.ssh_enabled:
        click.echo(f"SSH enabled on port {environment.ssh.port}")
    else:
        click.echo("SSH disabled")


@config.command()
def reset():
    """Reset environment configuration to defaults"""
    store = get_state_store()
    store.clear()
    store.save_environment_config(default_environment())
    click.echo("Configuration reset to defaults")
