"""stackwire.cli.plan_cmd — stackwire plan command."""

import sys
import click

from stackwire.cli.loader import compose_project
from stackwire.errors import StackwireError


@click.command("plan")
@click.option("-a", "--app", "app_ref", default=None,
              help="App reference (module:attr)")
@click.option("-o", "--output", default=None,
              help="Output file (default: stdout)")
@click.option("-C", "--dir", "project_dir", default=None,
              help="Project directory (default: pwd)")
def plan_cmd(app_ref, output, project_dir):
    """Compose the app and print the deployment plan as YAML."""
    try:
        app, _ = compose_project(project_dir, app_ref)
        plan = app.plan()
    except StackwireError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    yaml_str = plan.to_yaml()
    if not yaml_str:
        click.echo("Warning: No stacks composed.", err=True)
        return
    if output:
        with open(output, "w") as f:
            f.write(yaml_str)
        click.echo(f"Written to {output}", err=True)
    else:
        click.echo(yaml_str)
