"""stackwire.provision — Applying a plan through a driver."""

from stackwire.provision.driver import Driver, DryRunDriver, apply_plan
from stackwire.provision.refs import resolve_refs
from stackwire.provision.registry import (
    register_driver,
    get_driver,
    list_drivers,
    reset_registry,
)

__all__ = [
    "Driver",
    "DryRunDriver",
    "apply_plan",
    "resolve_refs",
    "register_driver",
    "get_driver",
    "list_drivers",
    "reset_registry",
]
