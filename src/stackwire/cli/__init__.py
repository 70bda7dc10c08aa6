"""
stackwire.cli — CLI entry point.

Commands:
  stackwire plan     — Print the deployment plan as YAML
  stackwire graph    — Show stack order and concurrent waves
  stackwire up       — Apply the plan through a driver
  stackwire drivers  — List provisioning drivers
"""

import click

from stackwire.cli.plan_cmd import plan_cmd
from stackwire.cli.graph_cmd import graph_cmd
from stackwire.cli.up import up_cmd
from stackwire.cli.drivers_cmd import drivers_cmd


@click.group()
@click.version_option(package_name="stackwire")
def main():
    """stackwire — Cross-stack serverless composition."""
    pass


main.add_command(plan_cmd, "plan")
main.add_command(graph_cmd, "graph")
main.add_command(up_cmd, "up")
main.add_command(drivers_cmd, "drivers")
