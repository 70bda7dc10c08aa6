"""stackwire.cli.graph_cmd — stackwire graph command."""

import sys
import click

from stackwire.cli.loader import compose_project
from stackwire.errors import StackwireError


@click.command("graph")
@click.option("-a", "--app", "app_ref", default=None,
              help="App reference (module:attr)")
@click.option("-C", "--dir", "project_dir", default=None,
              help="Project directory (default: pwd)")
def graph_cmd(app_ref, project_dir):
    """Show stack deployment order and concurrent waves."""
    try:
        app, _ = compose_project(project_dir, app_ref)
        plan = app.plan()
    except StackwireError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for sp in plan.stacks:
        deps = f"  (after {', '.join(sp.depends_on)})" if sp.depends_on else ""
        click.echo(f"{sp.name}{deps}")
        for step in sp.steps:
            click.echo(f"  {step.kind:<10} {step.id}")

    click.echo("")
    for i, wave in enumerate(plan.waves(), start=1):
        click.echo(f"Wave {i}: {', '.join(wave)}")
