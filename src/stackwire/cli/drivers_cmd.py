"""stackwire.cli.drivers_cmd — stackwire drivers command."""

import click

from stackwire.provision.registry import list_drivers


@click.command("drivers")
def drivers_cmd():
    """List available provisioning drivers."""
    drivers = list_drivers()
    width = max(len(name) for name in drivers)
    for name, cls in sorted(drivers.items()):
        click.echo(f"{name:<{width}}  {cls.description}")
