"""
stackwire.core.stack — Stack: unit of independent deployment.

A stack owns resource declarations and the grants between them.
It is under construction until sealed; the `with` block seals it
on a clean exit:

    with Stack(app, "bot") as bot:
        fn = bot.declare(FunctionResource("handler", ...))
        export = bot.export(fn)

Declaring only records specs. No ordering is computed here and no
physical resource is touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from stackwire.core.exports import ExportHandle
from stackwire.core.grant import PERMISSIONS, Grant
from stackwire.core.resource import (
    OutputRef,
    ResourceHandle,
    ResourceSpec,
    unwrap,
    validate_name,
)
from stackwire.core.resources import check_env_value
from stackwire.errors import ConfigurationError, InvalidReferenceError

if TYPE_CHECKING:
    from stackwire.core.app import App


class Stack:
    """Group of resources that deploy and roll back together."""

    def __init__(
        self,
        app: App,
        name: str,
        *,
        imports: Iterable[ExportHandle] = (),
        description: str = "",
    ):
        self.app = app
        self.name = validate_name(name, "stack")
        self.description = description

        self._resources: dict[str, ResourceHandle] = {}
        self._items: list[ResourceHandle | Grant] = []
        self._grants: dict[tuple[ResourceHandle, ResourceHandle], Grant] = {}
        self._exports: dict[ResourceHandle, ExportHandle] = {}
        self._imports: list[ExportHandle] = []
        self._dependencies: list[Stack] = []
        self._sealed = False

        for export in imports:
            self._import(export)

        app._register(self)

    # ─────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────
    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """End construction. Idempotent."""
        self._sealed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type: Any, *exc: Any) -> bool:
        if exc_type is None:
            self.seal()
        return False

    # ─────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────
    @property
    def resources(self) -> list[ResourceHandle]:
        return list(self._resources.values())

    @property
    def grants(self) -> list[Grant]:
        return list(self._grants.values())

    @property
    def items(self) -> list[ResourceHandle | Grant]:
        """Resources and grants in declaration order."""
        return list(self._items)

    @property
    def exports(self) -> list[ExportHandle]:
        return list(self._exports.values())

    @property
    def imports(self) -> list[ExportHandle]:
        return list(self._imports)

    @property
    def dependencies(self) -> list[Stack]:
        """Stacks that must be deployed before this one."""
        return list(self._dependencies)

    def get(self, name: str) -> ResourceHandle | None:
        return self._resources.get(name)

    # ─────────────────────────────────────────
    # Declarations
    # ─────────────────────────────────────────
    def declare(self, spec: ResourceSpec) -> ResourceHandle:
        """Register a resource spec and return its handle."""
        self._check_open("declare")
        if not isinstance(spec, ResourceSpec):
            raise ConfigurationError(
                f"Stack '{self.name}': expected a ResourceSpec, got {type(spec).__name__}"
            )
        if spec.name in self._resources:
            raise ConfigurationError(
                f"Duplicate resource name in stack '{self.name}': '{spec.name}'"
            )
        for ref in spec.references():
            self._resolve(ref, f"{spec.kind} '{spec.name}'")

        handle = ResourceHandle(self, spec)
        self._resources[spec.name] = handle
        self._items.append(handle)
        return handle

    def grant(
        self,
        principal: ResourceHandle | ExportHandle,
        resource: ResourceHandle | ExportHandle,
        permissions: str | Iterable[str] = PERMISSIONS,
    ) -> Grant:
        """Allow a function to read and/or write a table. Idempotent."""
        self._check_open("grant")
        p = self._resolve(principal, "grant principal")
        r = self._resolve(resource, "grant resource")
        grant = Grant(p, r, permissions)

        existing = self._grants.get(grant.key)
        if existing is None:
            self._grants[grant.key] = grant
            self._items.append(grant)
            return grant

        widened = existing.widen(grant.permissions)
        if widened != existing:
            self._grants[grant.key] = widened
            self._items[self._items.index(existing)] = widened
        return widened

    def export(self, handle: ResourceHandle) -> ExportHandle:
        """Mark an owned resource as consumable by other stacks. Idempotent."""
        self._check_open("export")
        handle = unwrap(handle)
        if not isinstance(handle, ResourceHandle) or handle.stack is not self:
            raise InvalidReferenceError(
                f"Stack '{self.name}' can only export its own resources, got {handle!r}"
            )
        if self._resources.get(handle.name) is not handle:
            raise InvalidReferenceError(
                f"Cannot export '{handle.id}': it is not declared in stack '{self.name}'"
            )
        if handle not in self._exports:
            self._exports[handle] = ExportHandle(self, handle)
        return self._exports[handle]

    def remove(self, handle: ResourceHandle) -> None:
        """Drop an owned resource that nothing else references."""
        self._check_open("remove")
        if not isinstance(handle, ResourceHandle) or self._resources.get(handle.name) is not handle:
            raise InvalidReferenceError(
                f"Stack '{self.name}' does not own {handle!r}"
            )
        for other in self._items:
            if other is handle:
                continue
            refs = other.references() if isinstance(other, Grant) else other.spec.references()
            if any(ref is handle for ref in refs):
                raise ConfigurationError(
                    f"Cannot remove '{handle.id}': still referenced by '{other.id}'"
                )
        if handle in self._exports:
            raise ConfigurationError(f"Cannot remove '{handle.id}': it is exported")

        del self._resources[handle.name]
        self._items.remove(handle)

    def add_dependency(self, other: Stack) -> None:
        """Deploy ``other`` before this stack.

        Ordering metadata only; may be added after construction.
        """
        if not isinstance(other, Stack) or other.app is not self.app:
            raise InvalidReferenceError(
                f"Stack '{self.name}' can only depend on stacks of the same app"
            )
        if other is self:
            raise ConfigurationError(f"Stack '{self.name}' cannot depend on itself")
        if other not in self._dependencies:
            self._dependencies.append(other)

    # ─────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────
    def _import(self, export: Any) -> None:
        if not isinstance(export, ExportHandle):
            raise ConfigurationError(
                f"Stack '{self.name}': imports must be ExportHandles, "
                f"got {type(export).__name__}"
            )
        producer = export.producer
        if producer.app is not self.app:
            raise InvalidReferenceError(
                f"Stack '{self.name}': cannot import '{export.id}' from another app"
            )
        if not producer.sealed:
            raise ConfigurationError(
                f"Stack '{self.name}': cannot import '{export.id}' before stack "
                f"'{producer.name}' is fully constructed"
            )
        if export not in self._imports:
            self._imports.append(export)
        if producer not in self._dependencies:
            self._dependencies.append(producer)

    def _resolve(self, value: Any, field: str) -> ResourceHandle:
        """Return the handle behind ``value`` if this stack may use it."""
        handle = unwrap(value)
        if not isinstance(handle, ResourceHandle):
            raise ConfigurationError(
                f"{field} must be a resource handle, got {type(value).__name__}"
            )
        owner = handle.stack
        if owner is self:
            if self._resources.get(handle.name) is not handle:
                raise InvalidReferenceError(
                    f"{field}: '{handle.id}' is not declared in stack '{self.name}'"
                )
            return handle
        if owner.app is not self.app:
            raise InvalidReferenceError(
                f"{field}: '{handle.id}' belongs to another app"
            )
        if not owner.sealed:
            raise ConfigurationError(
                f"{field}: stack '{owner.name}' is still under construction"
            )
        if not any(e.handle is handle for e in self._imports):
            raise InvalidReferenceError(
                f"{field}: '{handle.id}' was not exported to stack '{self.name}'"
            )
        return handle

    def _set_environment(self, handle: ResourceHandle, key: str,
                         value: str | OutputRef) -> None:
        self._check_open("set environment on")
        if handle.kind != "Function":
            raise ConfigurationError(f"'{handle.id}' is not a Function")
        check_env_value(key, value)
        if isinstance(value, OutputRef):
            self._resolve(value.handle, f"environment '{key}' of '{handle.id}'")
        handle.spec.environment[key] = value

    def _check_open(self, action: str) -> None:
        if self._sealed:
            raise ConfigurationError(
                f"Cannot {action} stack '{self.name}': construction is finished"
            )

    def __repr__(self) -> str:
        return f"<Stack {self.name}>"
