"""
stackwire.provision.driver — Provisioning driver interface.

A driver turns one plan step into a real cloud resource and returns
its physical identifiers. `apply_plan()` walks the plan in order and
threads every returned identifier into the placeholders of the steps
that follow.

The core never retries and never rolls back; a failed step stops the
pass with a ProvisioningError carrying the step id.
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable, ClassVar

from stackwire.config import Target
from stackwire.errors import ProvisioningError, RefError
from stackwire.graph.builder import DeploymentPlan, Step
from stackwire.provision.refs import resolve_refs


class Driver:
    """Provisioning driver base class.

    Subclasses must define:

    - ``name``: Driver name (matches the entry_points key)
    - ``apply(step, properties)``: create or update one resource and
      return its outputs

    Usage::

        class CloudFormationDriver(Driver):
            name = "cloudformation"

            def apply(self, step, properties):
                ...
                return {"table_name": physical_name, "table_arn": arn}
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""

    def __init__(self, target: Target | None = None):
        self.target = target

    def apply(self, step: Step, properties: dict[str, Any]) -> dict[str, str]:
        """Apply one step. Subclass MUST implement."""
        raise NotImplementedError(f"{self.__class__.__name__}.apply()")


class DryRunDriver(Driver):
    """In-memory driver: records calls and invents stable identifiers."""

    name = "dry-run"
    description = "Record apply calls without touching any cloud account"

    def __init__(self, target: Target | None = None):
        super().__init__(target or Target(account="000000000000", region="us-east-1"))
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def apply(self, step: Step, properties: dict[str, Any]) -> dict[str, str]:
        self.calls.append((step.id, properties))
        if step.action == "grant":
            return {}

        region = self.target.region
        account = self.target.account
        physical = step.id.replace("/", "-")
        short = hashlib.sha256(step.id.encode()).hexdigest()[:10]

        if step.kind == "Function":
            fn = properties.get("functionName") or physical
            return {
                "function_name": fn,
                "function_arn": f"arn:aws:lambda:{region}:{account}:function:{fn}",
            }
        if step.kind == "Table":
            table = properties.get("tableName") or physical
            return {
                "table_name": table,
                "table_arn": f"arn:aws:dynamodb:{region}:{account}:table/{table}",
            }
        if step.kind == "HttpApi":
            return {
                "api_id": short,
                "api_endpoint": f"https://{short}.execute-api.{region}.amazonaws.com",
            }
        if step.kind == "HttpRoute":
            return {"route_id": short[:7]}
        if step.kind == "Schedule":
            return {
                "schedule_arn": f"arn:aws:scheduler:{region}:{account}:schedule/default/{physical}",
            }
        if step.kind == "EventRule":
            return {"rule_arn": f"arn:aws:events:{region}:{account}:rule/{physical}"}
        return {}


def apply_plan(
    plan: DeploymentPlan,
    driver: Driver,
    on_step: Callable[[Step], None] | None = None,
) -> dict[str, dict[str, str]]:
    """Apply every step of the plan in order.

    Args:
        plan: Resolved deployment plan
        driver: Driver performing the create/update calls
        on_step: Called before each step is applied (progress output)

    Returns:
        Resource id -> outputs returned by the driver

    Raises:
        ProvisioningError: a step failed; nothing after it was applied
    """
    outputs: dict[str, dict[str, str]] = {}
    for step in plan.steps:
        try:
            properties = resolve_refs(step.properties, outputs)
        except RefError as e:
            raise ProvisioningError(step.id, str(e)) from e

        if on_step is not None:
            on_step(step)

        try:
            result = driver.apply(step, properties) or {}
        except ProvisioningError:
            raise
        except Exception as e:
            raise ProvisioningError(step.id, f"{type(e).__name__}: {e}") from e

        missing = [o for o in step.outputs if o not in result]
        if missing:
            raise ProvisioningError(
                step.id, f"driver returned no value for output(s) {missing}"
            )
        if step.action == "resource":
            outputs[step.id] = {k: str(v) for k, v in result.items()}
    return outputs
