"""
stackwire — Cross-stack composition for small serverless backends.

Declare resources in stacks, pass exports between them, and get a
deterministic, cycle-checked deployment order.
"""

from stackwire.errors import (
    StackwireError,
    ConfigurationError,
    InvalidReferenceError,
    TopologyError,
    ProvisioningError,
)
from stackwire.config import Target, Secrets
from stackwire.core.resource import ResourceSpec, ResourceHandle, OutputRef
from stackwire.core.resources import (
    FunctionResource,
    TableResource,
    Key,
    HttpApi,
    RouteResource,
    ScheduleResource,
    EventRuleResource,
)
from stackwire.core.grant import Grant
from stackwire.core.exports import ExportHandle
from stackwire.core.stack import Stack
from stackwire.core.app import App
from stackwire.graph.builder import build_plan, DeploymentPlan
from stackwire.triggers.cron import CronExpression, cron
from stackwire.triggers.binder import bind_schedule, bind_event_rule, unbind
from stackwire.provision.driver import Driver, DryRunDriver, apply_plan

__version__ = "0.1.0"

__all__ = [
    # errors
    "StackwireError",
    "ConfigurationError",
    "InvalidReferenceError",
    "TopologyError",
    "ProvisioningError",
    # config
    "Target",
    "Secrets",
    # declarations
    "ResourceSpec",
    "ResourceHandle",
    "OutputRef",
    "FunctionResource",
    "TableResource",
    "Key",
    "HttpApi",
    "RouteResource",
    "ScheduleResource",
    "EventRuleResource",
    # composition
    "Grant",
    "ExportHandle",
    "Stack",
    "App",
    # ordering
    "build_plan",
    "DeploymentPlan",
    # triggers
    "CronExpression",
    "cron",
    "bind_schedule",
    "bind_event_rule",
    "unbind",
    # provisioning
    "Driver",
    "DryRunDriver",
    "apply_plan",
]
