"""
stackwire.core.grant — Permission grant from a function to a table.

A grant is identified by its (principal, resource) pair. Recording
the same pair twice keeps a single edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from stackwire.core.resource import ResourceHandle, require_handle
from stackwire.errors import ConfigurationError

PERMISSIONS = ("read", "write")


def normalize_permissions(permissions: str | Iterable[str]) -> frozenset[str]:
    """Return a validated permission set.

    >>> sorted(normalize_permissions("read"))
    ['read']
    """
    if isinstance(permissions, str):
        permissions = [permissions]
    perms = frozenset(p.lower() for p in permissions)
    if not perms:
        raise ConfigurationError("A grant needs at least one permission")
    unknown = perms - set(PERMISSIONS)
    if unknown:
        raise ConfigurationError(
            f"Unknown permission(s): {sorted(unknown)}. Supported: {list(PERMISSIONS)}"
        )
    return perms


@dataclass(frozen=True)
class Grant:
    """Directional permission edge: principal may use resource."""

    principal: ResourceHandle
    resource: ResourceHandle
    permissions: frozenset[str] = frozenset(PERMISSIONS)

    def __post_init__(self):
        require_handle(self.principal, "Function", "grant principal")
        require_handle(self.resource, "Table", "grant resource")
        object.__setattr__(self, "permissions", normalize_permissions(self.permissions))

    @property
    def key(self) -> tuple[ResourceHandle, ResourceHandle]:
        return (self.principal, self.resource)

    @property
    def id(self) -> str:
        return f"grant({self.principal.id} -> {self.resource.id})"

    def widen(self, permissions: Iterable[str]) -> Grant:
        """Return a grant over the union of both permission sets."""
        return Grant(self.principal, self.resource,
                     self.permissions | normalize_permissions(permissions))

    def references(self) -> list[ResourceHandle]:
        return [self.principal, self.resource]

    def render(self) -> dict[str, Any]:
        return {
            "kind": "Grant",
            "principal": self.principal.id,
            "resource": self.resource.id,
            "permissions": sorted(self.permissions),
        }
