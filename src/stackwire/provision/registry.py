"""
stackwire.provision.registry — Driver discovery.

Discovery from two sources:

1. Built-in drivers (dry-run)
2. entry_points in group "stackwire.drivers" from installed packages
3. Runtime register (for testing)

    [project.entry-points."stackwire.drivers"]
    cloudformation = "stackwire_cfn:CloudFormationDriver"
"""

from __future__ import annotations

from importlib.metadata import entry_points

from stackwire.config import Target
from stackwire.provision.driver import Driver, DryRunDriver

_BUILTIN: dict[str, type[Driver]] = {DryRunDriver.name: DryRunDriver}

# Runtime registry
_registry: dict[str, type[Driver]] = dict(_BUILTIN)
_discovered = False


def _discover_drivers() -> None:
    """Load drivers advertised by installed packages."""
    global _discovered
    if _discovered:
        return
    _discovered = True

    for ep in entry_points(group="stackwire.drivers"):
        if ep.name not in _registry:
            _registry[ep.name] = ep.load()


def register_driver(driver_cls: type[Driver]) -> None:
    """Manually register a driver class (for testing/dev)."""
    _registry[driver_cls.name] = driver_cls


def get_driver(name: str, target: Target | None = None) -> Driver | None:
    """Create a driver instance from its name."""
    _discover_drivers()
    cls = _registry.get(name)
    if cls is None:
        return None
    return cls(target)


def list_drivers() -> dict[str, type[Driver]]:
    """Return all registered drivers."""
    _discover_drivers()
    return dict(_registry)


def reset_registry() -> None:
    """Reset the registry. For testing."""
    global _discovered
    _registry.clear()
    _registry.update(_BUILTIN)
    _discovered = False
