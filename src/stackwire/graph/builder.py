"""
stackwire.graph.builder — Dependency Graph Builder.

Turns a composed App into a DeploymentPlan:

1. Stack graph: edge A -> B when B imports an export of A or
   explicitly depends on A. Cycles are a TopologyError.
2. Stack order: topological sort, ties broken by construction order.
3. Step order per stack: declaration order, except that a resource
   follows every same-stack resource it references and a grant
   follows its principal and its resource.

The same input always produces the same order.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Hashable, Iterable, Mapping

import yaml

from stackwire.core.grant import Grant
from stackwire.core.resource import ResourceHandle
from stackwire.errors import TopologyError

if TYPE_CHECKING:
    from stackwire.core.app import App
    from stackwire.core.stack import Stack


@dataclass
class Step:
    """One create/update call handed to the driver."""
    id: str
    stack: str
    action: str                 # "resource" | "grant"
    kind: str
    properties: dict[str, Any]
    depends_on: list[str] = field(default_factory=list)
    outputs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": self.id,
            "action": self.action,
            "kind": self.kind,
        }
        if self.depends_on:
            doc["dependsOn"] = list(self.depends_on)
        doc["properties"] = self.properties
        return doc


@dataclass
class StackPlan:
    """Ordered steps of a single stack."""
    name: str
    depends_on: list[str] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"stack": self.name}
        if self.depends_on:
            doc["dependsOn"] = list(self.depends_on)
        doc["steps"] = [s.to_dict() for s in self.steps]
        return doc


@dataclass
class DeploymentPlan:
    """Resolved deployment order for every stack of an app."""
    stacks: list[StackPlan] = field(default_factory=list)

    @property
    def steps(self) -> list[Step]:
        return [step for sp in self.stacks for step in sp.steps]

    @property
    def order(self) -> list[str]:
        return [sp.name for sp in self.stacks]

    def step(self, step_id: str) -> Step | None:
        for s in self.steps:
            if s.id == step_id:
                return s
        return None

    def waves(self) -> list[list[str]]:
        """Group stacks into waves with no edge inside a wave.

        A driver may apply the stacks of one wave concurrently.
        """
        level: dict[str, int] = {}
        for sp in self.stacks:
            level[sp.name] = 1 + max((level[d] for d in sp.depends_on), default=-1)
        waves: list[list[str]] = []
        for sp in self.stacks:
            while len(waves) <= level[sp.name]:
                waves.append([])
            waves[level[sp.name]].append(sp.name)
        return waves

    def to_dicts(self) -> list[dict[str, Any]]:
        return [sp.to_dict() for sp in self.stacks]

    def to_yaml(self) -> str:
        """Produce a multi-document YAML string, one document per stack."""
        parts: list[str] = []
        for doc in self.to_dicts():
            parts.append(yaml.dump(
                doc,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            ))
        return "---\n".join(parts)


def toposort(
    nodes: Iterable[Hashable],
    depends_on: Mapping[Hashable, Iterable[Hashable]],
) -> list[Hashable]:
    """Stable topological sort (Kahn).

    ``depends_on[n]`` lists the nodes that must come before ``n``;
    nodes outside ``nodes`` are ignored. Among ready nodes, the one
    listed first in ``nodes`` wins.

    >>> toposort(["b", "a"], {"b": ["a"]})
    ['a', 'b']

    Raises:
        TopologyError: the graph has a cycle
    """
    ordered = list(dict.fromkeys(nodes))
    index = {n: i for i, n in enumerate(ordered)}

    pending: dict[Hashable, int] = {}
    dependents: dict[Hashable, list[Hashable]] = {n: [] for n in ordered}
    for n in ordered:
        prereqs = [d for d in dict.fromkeys(depends_on.get(n, ())) if d in index]
        pending[n] = len(prereqs)
        for d in prereqs:
            dependents[d].append(n)

    ready = [index[n] for n in ordered if pending[n] == 0]
    heapq.heapify(ready)
    result: list[Hashable] = []
    while ready:
        n = ordered[heapq.heappop(ready)]
        result.append(n)
        for m in dependents[n]:
            pending[m] -= 1
            if pending[m] == 0:
                heapq.heappush(ready, index[m])

    if len(result) < len(ordered):
        remaining = [n for n in ordered if pending[n] > 0]
        cycle = _find_cycle(remaining, depends_on)
        raise TopologyError(
            "Dependency cycle: " + " -> ".join(str(n) for n in cycle)
        )
    return result


def _find_cycle(
    nodes: list[Hashable],
    depends_on: Mapping[Hashable, Iterable[Hashable]],
) -> list[Hashable]:
    """Return one cycle among ``nodes`` as a closed path."""
    members = set(nodes)
    path: list[Hashable] = []
    on_path: set[Hashable] = set()
    done: set[Hashable] = set()

    def visit(n: Hashable) -> list[Hashable] | None:
        path.append(n)
        on_path.add(n)
        for d in depends_on.get(n, ()):
            if d not in members or d in done:
                continue
            if d in on_path:
                start = path.index(d)
                # path follows prerequisites; report in deployment direction
                return list(reversed(path[start:] + [d]))
            found = visit(d)
            if found:
                return found
        path.pop()
        on_path.discard(n)
        done.add(n)
        return None

    for n in nodes:
        if n not in done:
            found = visit(n)
            if found:
                return found
    return list(nodes)


def build_plan(app: App) -> DeploymentPlan:
    """Seal every stack and compute the deployment plan.

    Raises:
        TopologyError: cycle among stacks or among a stack's resources
    """
    stacks = app.stacks
    for s in stacks:
        s.seal()

    by_name = {s.name: s for s in stacks}
    stack_deps = {s.name: [d.name for d in s.dependencies] for s in stacks}
    order = toposort([s.name for s in stacks], stack_deps)

    plan = DeploymentPlan()
    for name in order:
        stack = by_name[name]
        plan.stacks.append(StackPlan(
            name=name,
            depends_on=[d for d in order if d in stack_deps[name]],
            steps=_order_steps(stack),
        ))
    return plan


def _order_steps(stack: Stack) -> list[Step]:
    items = {item.id: item for item in stack.items}
    refs: dict[str, list[ResourceHandle]] = {}
    for item_id, item in items.items():
        if isinstance(item, Grant):
            refs[item_id] = item.references()
        else:
            refs[item_id] = item.spec.references()

    local = {
        item_id: [r.id for r in handles if r.stack is stack]
        for item_id, handles in refs.items()
    }
    ordered = toposort(list(items), local)
    return [_make_step(stack, items[i], refs[i]) for i in ordered]


def _make_step(stack: Stack, item: ResourceHandle | Grant,
               refs: list[ResourceHandle]) -> Step:
    depends_on = [r.id for r in refs]
    if isinstance(item, Grant):
        doc = item.render()
        return Step(
            id=f"{stack.name}/{item.id}",
            stack=stack.name,
            action="grant",
            kind="Grant",
            properties={k: v for k, v in doc.items() if k != "kind"},
            depends_on=depends_on,
        )
    doc = item.spec.render()
    return Step(
        id=item.id,
        stack=stack.name,
        action="resource",
        kind=item.kind,
        properties=doc["properties"],
        depends_on=depends_on,
        outputs=tuple(item.spec.outputs),
    )
