"""stackwire.graph — Dependency ordering."""

from stackwire.graph.builder import (
    build_plan,
    toposort,
    DeploymentPlan,
    StackPlan,
    Step,
)

__all__ = [
    "build_plan",
    "toposort",
    "DeploymentPlan",
    "StackPlan",
    "Step",
]
