"""
stackwire.core.app — Composition root.

Holds the deployment target, named secrets and every stack in
construction order. There is no lookup-by-name between stacks;
`stack(name)` exists for reporting only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stackwire.config import Secrets, Target
from stackwire.errors import ConfigurationError

if TYPE_CHECKING:
    from stackwire.core.stack import Stack
    from stackwire.graph.builder import DeploymentPlan


class App:
    """A set of stacks composed in one synchronous pass."""

    def __init__(self, target: Target | None = None, secrets: Secrets | None = None):
        self.target = target
        self.secrets = secrets if secrets is not None else Secrets()
        self._stacks: list[Stack] = []

    @property
    def stacks(self) -> list[Stack]:
        return list(self._stacks)

    def stack(self, name: str) -> Stack | None:
        for s in self._stacks:
            if s.name == name:
                return s
        return None

    def _register(self, stack: Stack) -> None:
        if self.stack(stack.name) is not None:
            raise ConfigurationError(f"Duplicate stack name: '{stack.name}'")
        self._stacks.append(stack)

    def plan(self) -> DeploymentPlan:
        """Seal all stacks and compute the deployment order."""
        from stackwire.graph.builder import build_plan
        return build_plan(self)
