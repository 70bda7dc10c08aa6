"""
stackwire.cli.up — stackwire up command.

    stackwire up --dry-run               — Record apply calls only
    stackwire up --driver cloudformation — Apply through a driver
"""

import sys
import click
import yaml

from stackwire.cli.loader import compose_project
from stackwire.errors import ProvisioningError, StackwireError
from stackwire.provision.driver import DryRunDriver, apply_plan
from stackwire.provision.registry import get_driver


@click.command("up")
@click.option("-a", "--app", "app_ref", default=None,
              help="App reference (module:attr)")
@click.option("--driver", "driver_name", default=DryRunDriver.name,
              help="Provisioning driver (see 'stackwire drivers')")
@click.option("--dry-run", is_flag=True, default=False,
              help="Use the dry-run driver regardless of --driver")
@click.option("--account", default=None, help="Target account id")
@click.option("--region", default=None, help="Target region")
@click.option("-C", "--dir", "project_dir", default=None,
              help="Project directory (default: pwd)")
def up_cmd(app_ref, driver_name, dry_run, account, region, project_dir):
    """Compose, plan and apply the app."""
    if dry_run:
        driver_name = DryRunDriver.name

    try:
        app, _ = compose_project(
            project_dir, app_ref, account=account, region=region,
            require_target=driver_name != DryRunDriver.name,
        )
        plan = app.plan()
    except StackwireError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    driver = get_driver(driver_name, app.target)
    if driver is None:
        click.echo(f"Error: Driver '{driver_name}' not found.", err=True)
        click.echo("Run 'stackwire drivers' to see available drivers.", err=True)
        sys.exit(1)

    def on_step(step):
        click.echo(f"Applying {step.id}...", err=True)

    try:
        outputs = apply_plan(plan, driver, on_step=on_step)
    except ProvisioningError as e:
        click.echo(f"Error: {e.resource_id} failed: {e.message}", err=True)
        sys.exit(1)

    if outputs:
        click.echo(yaml.dump(outputs, default_flow_style=False, sort_keys=False))
    click.echo(f"✓ {len(plan.steps)} steps applied with {driver_name}.", err=True)
