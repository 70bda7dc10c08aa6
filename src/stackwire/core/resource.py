"""
stackwire.core.resource — Base ResourceSpec class.

Common behaviors for all declarable resources:
- Name validation
- Handle and output references (create-before-use edges)
- Property render with `${stack/resource.attribute}` placeholders

Constructing a spec only validates it. Nothing is registered or
created until the spec is passed to `Stack.declare()`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Iterator

from stackwire.errors import ConfigurationError

if TYPE_CHECKING:
    from stackwire.core.stack import Stack


_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def validate_name(name: Any, what: str = "resource") -> str:
    """Check a resource or stack name."""
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"{what} name is required")
    if not _NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Invalid {what} name: '{name}'. "
            f"Use letters, digits, '-' and '_' only."
        )
    return name


@dataclass(frozen=True)
class OutputRef:
    """Placeholder for a physical identifier produced by another resource.

    Resolved to a literal value only after the referenced resource
    has been applied.
    """

    handle: ResourceHandle
    attribute: str

    @property
    def token(self) -> str:
        return "${" + f"{self.handle.id}.{self.attribute}" + "}"

    def __str__(self) -> str:
        return self.token


class ResourceHandle:
    """Reference to a declared resource. Returned by `Stack.declare()`."""

    def __init__(self, stack: Stack, spec: ResourceSpec):
        self.stack = stack
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> str:
        return self.spec.kind

    @property
    def id(self) -> str:
        return f"{self.stack.name}/{self.spec.name}"

    def output(self, attribute: str) -> OutputRef:
        """Reference one of the resource's provisioned outputs."""
        if attribute not in self.spec.outputs:
            raise ConfigurationError(
                f"{self.kind} '{self.id}' has no output '{attribute}'. "
                f"Available: {list(self.spec.outputs)}"
            )
        return OutputRef(self, attribute)

    def set_environment(self, key: str, value: str | OutputRef) -> None:
        """Add an environment binding to a function still under construction."""
        self.stack._set_environment(self, key, value)

    def __repr__(self) -> str:
        return f"<{self.kind} {self.id}>"


def unwrap(value: Any) -> Any:
    """Return the ResourceHandle behind an export handle, else the value."""
    inner = getattr(value, "handle", None)
    if isinstance(inner, ResourceHandle):
        return inner
    return value


def require_handle(value: Any, kind: str, field: str) -> ResourceHandle:
    """Validate that a field references a resource of the given kind."""
    if value is None:
        raise ConfigurationError(f"{field} is required")
    handle = unwrap(value)
    if not isinstance(handle, ResourceHandle):
        raise ConfigurationError(
            f"{field} must be a resource handle, got {type(value).__name__}"
        )
    if handle.kind != kind:
        raise ConfigurationError(
            f"{field} must reference a {kind}, got {handle.kind} '{handle.id}'"
        )
    return handle


class ResourceSpec:
    """Base class for all resource declarations.

    Subclasses set ``kind`` and ``outputs``, validate their fields in
    ``__init__`` and return them from ``properties()``.
    """

    kind: ClassVar[str] = ""
    outputs: ClassVar[tuple[str, ...]] = ()

    def __init__(self, name: str):
        self.name = validate_name(name)

    def properties(self) -> dict[str, Any]:
        """Return the resource's configuration. Subclass MUST implement."""
        raise NotImplementedError(f"{self.__class__.__name__}.properties()")

    def references(self) -> list[ResourceHandle]:
        """Handles this resource must be created after, in first-seen order."""
        seen: list[ResourceHandle] = []
        for handle in _walk_handles(self.properties()):
            if not any(h is handle for h in seen):
                seen.append(handle)
        return seen

    def render(self) -> dict[str, Any]:
        """Produce a plain dict, with references rendered as ids and tokens."""
        return {
            "kind": self.kind,
            "name": self.name,
            "properties": _render_value(self.properties()),
        }


def _walk_handles(value: Any) -> Iterator[ResourceHandle]:
    if isinstance(value, ResourceHandle):
        yield value
    elif isinstance(value, OutputRef):
        yield value.handle
    elif isinstance(value, dict):
        for item in value.values():
            yield from _walk_handles(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _walk_handles(item)


def _render_value(value: Any) -> Any:
    if isinstance(value, ResourceHandle):
        return value.id
    if isinstance(value, OutputRef):
        return value.token
    if isinstance(value, dict):
        return {k: _render_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_render_value(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
