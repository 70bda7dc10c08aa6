"""
stackwire.triggers.binder — Attach triggers to functions.

The target function does not know about its invokers: a trigger is
its own resource in the binding stack, so several schedules may
target one function and removing one leaves the others in place.

    bind_schedule(lp, handler, cron(minute=0, hour=0),
                  name="midnight", timezone="America/New_York")
"""

from __future__ import annotations

from typing import Any, Mapping

from stackwire.core.exports import ExportHandle
from stackwire.core.resource import ResourceHandle
from stackwire.core.resources import EventRuleResource, ScheduleResource
from stackwire.core.stack import Stack
from stackwire.errors import InvalidReferenceError
from stackwire.triggers.cron import CronExpression, as_cron

_TRIGGER_KINDS = ("Schedule", "EventRule")


def bind_schedule(
    stack: Stack,
    target: ResourceHandle | ExportHandle,
    cron: CronExpression | str | Mapping[str, Any],
    *,
    name: str,
    timezone: str = "UTC",
    description: str = "",
    enabled: bool = True,
) -> ResourceHandle:
    """Invoke ``target`` on a cron schedule.

    Raises:
        ConfigurationError: invalid cron field, timezone or target
        InvalidReferenceError: target not owned by or exported to ``stack``
    """
    return stack.declare(ScheduleResource(
        name,
        cron=as_cron(cron),
        target=target,
        timezone=timezone,
        description=description,
        enabled=enabled,
    ))


def bind_event_rule(
    stack: Stack,
    target: ResourceHandle | ExportHandle,
    event_pattern: Mapping[str, Any],
    *,
    name: str,
    description: str = "",
) -> ResourceHandle:
    """Invoke ``target`` for every event matching ``event_pattern``."""
    return stack.declare(EventRuleResource(
        name,
        event_pattern=event_pattern,
        target=target,
        description=description,
    ))


def unbind(stack: Stack, trigger: ResourceHandle) -> None:
    """Remove a single trigger from ``stack``."""
    if not isinstance(trigger, ResourceHandle) or trigger.kind not in _TRIGGER_KINDS:
        raise InvalidReferenceError(f"{trigger!r} is not a trigger")
    stack.remove(trigger)


def triggers_of(stack: Stack, target: ResourceHandle | ExportHandle) -> list[ResourceHandle]:
    """Triggers in ``stack`` that invoke ``target``, in declaration order."""
    handle = target.handle if isinstance(target, ExportHandle) else target
    return [
        r for r in stack.resources
        if r.kind in _TRIGGER_KINDS and r.spec.target is handle
    ]
