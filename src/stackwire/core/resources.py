"""
stackwire.core.resources — Concrete resource declarations.

Rule: a spec validates every field at construction time and raises
ConfigurationError for a missing required field or a value outside
its legal domain.

compute: FunctionResource
data:    TableResource (Key)
http:    HttpApi, RouteResource
trigger: ScheduleResource, EventRuleResource
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from stackwire.core.resource import (
    OutputRef,
    ResourceSpec,
    require_handle,
)
from stackwire.errors import ConfigurationError
from stackwire.triggers.cron import CronExpression


RUNTIMES = frozenset({
    "provided", "provided.al2", "provided.al2023",
    "python3.9", "python3.10", "python3.11", "python3.12", "python3.13",
    "nodejs18.x", "nodejs20.x", "nodejs22.x",
    "java11", "java17", "java21",
    "dotnet8", "ruby3.2", "ruby3.3",
})
ARCHITECTURES = ("x86_64", "arm64")
BILLING_MODES = ("PAY_PER_REQUEST", "PROVISIONED")
KEY_TYPES = ("S", "N", "B")
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ANY")

_ENV_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _one_of(value: Any, allowed: tuple[str, ...] | frozenset[str], field: str) -> str:
    if value not in allowed:
        raise ConfigurationError(
            f"Invalid {field}: '{value}'. Expected one of: {sorted(allowed)}"
        )
    return value


def _int_in(value: Any, low: int, high: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ConfigurationError(f"{field} must be between {low} and {high}, got {value}")
    return value


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# FUNCTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def check_env_value(key: Any, value: Any) -> None:
    """Validate a single environment binding."""
    if not isinstance(key, str) or not _ENV_KEY.match(key):
        raise ConfigurationError(f"Invalid environment variable name: {key!r}")
    if isinstance(value, OutputRef):
        return
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Environment variable '{key}' must be a string or an output "
            f"reference, got {type(value).__name__}"
        )
    if "${" in value:
        raise ConfigurationError(
            f"Environment variable '{key}' embeds a raw reference; "
            f"pass handle.output(...) instead"
        )


class FunctionResource(ResourceSpec):
    """Compute function.

    ``artifact_ref`` is an opaque locator supplied by the packaging
    step; its contents are never inspected.
    """

    kind = "Function"
    outputs = ("function_arn", "function_name")

    def __init__(
        self,
        name: str,
        *,
        runtime: str | None = None,
        artifact_ref: str | None = None,
        memory: int = 128,
        architecture: str = "x86_64",
        handler: str = "not.required",
        timeout: int = 3,
        function_name: str | None = None,
        description: str = "",
        environment: Mapping[str, str | OutputRef] | None = None,
    ):
        super().__init__(name)
        if not runtime:
            raise ConfigurationError(f"Function '{name}': runtime is required")
        if not artifact_ref or not isinstance(artifact_ref, str):
            raise ConfigurationError(f"Function '{name}': artifact_ref is required")

        self.runtime = _one_of(runtime, RUNTIMES, "runtime")
        self.artifact_ref = artifact_ref
        self.memory = _int_in(memory, 128, 10240, "memory")
        self.architecture = _one_of(architecture, ARCHITECTURES, "architecture")
        self.handler = handler
        self.timeout = _int_in(timeout, 1, 900, "timeout")
        self.function_name = function_name
        self.description = description

        self.environment: dict[str, str | OutputRef] = {}
        for key, value in (environment or {}).items():
            check_env_value(key, value)
            self.environment[key] = value

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "runtime": self.runtime,
            "handler": self.handler,
            "memory": self.memory,
            "architecture": self.architecture,
            "timeout": self.timeout,
            "artifactRef": self.artifact_ref,
        }
        if self.function_name:
            props["functionName"] = self.function_name
        if self.description:
            props["description"] = self.description
        if self.environment:
            props["environment"] = dict(self.environment)
        return props


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TABLE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@dataclass(frozen=True)
class Key:
    """Table key attribute."""
    name: str
    type: str = "S"

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("key name is required")
        _one_of(self.type, KEY_TYPES, "key type")


def _as_key(value: Key | str | None, field: str) -> Key | None:
    if value is None:
        return None
    if isinstance(value, Key):
        return value
    if isinstance(value, str):
        return Key(value)
    raise ConfigurationError(f"{field} must be a Key or an attribute name")


class TableResource(ResourceSpec):
    """Durable key/value table."""

    kind = "Table"
    outputs = ("table_name", "table_arn")

    def __init__(
        self,
        name: str,
        *,
        partition_key: Key | str | None = None,
        sort_key: Key | str | None = None,
        billing_mode: str = "PAY_PER_REQUEST",
        read_capacity: int | None = None,
        write_capacity: int | None = None,
        table_name: str | None = None,
    ):
        super().__init__(name)
        self.partition_key = _as_key(partition_key, "partition_key")
        if self.partition_key is None:
            raise ConfigurationError(f"Table '{name}': partition_key is required")
        self.sort_key = _as_key(sort_key, "sort_key")
        self.billing_mode = _one_of(billing_mode, BILLING_MODES, "billing_mode")

        if self.billing_mode == "PROVISIONED":
            if read_capacity is None or write_capacity is None:
                raise ConfigurationError(
                    f"Table '{name}': PROVISIONED billing requires "
                    f"read_capacity and write_capacity"
                )
            _int_in(read_capacity, 1, 40000, "read_capacity")
            _int_in(write_capacity, 1, 40000, "write_capacity")
        elif read_capacity is not None or write_capacity is not None:
            raise ConfigurationError(
                f"Table '{name}': capacity is only valid with PROVISIONED billing"
            )
        self.read_capacity = read_capacity
        self.write_capacity = write_capacity
        self.table_name = table_name

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "partitionKey": {"name": self.partition_key.name,
                             "type": self.partition_key.type},
        }
        if self.sort_key:
            props["sortKey"] = {"name": self.sort_key.name,
                                "type": self.sort_key.type}
        props["billingMode"] = self.billing_mode
        if self.billing_mode == "PROVISIONED":
            props["readCapacity"] = self.read_capacity
            props["writeCapacity"] = self.write_capacity
        if self.table_name:
            props["tableName"] = self.table_name
        return props


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTP
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class HttpApi(ResourceSpec):
    """HTTP entry point.

    With ``default_integration`` set, every path without an explicit
    route is sent to that function.
    """

    kind = "HttpApi"
    outputs = ("api_id", "api_endpoint")

    def __init__(
        self,
        name: str,
        *,
        default_integration: Any = None,
        api_name: str | None = None,
        description: str = "",
    ):
        super().__init__(name)
        self.default_integration = None
        if default_integration is not None:
            self.default_integration = require_handle(
                default_integration, "Function", "default_integration")
        self.api_name = api_name
        self.description = description

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {}
        if self.api_name:
            props["apiName"] = self.api_name
        if self.description:
            props["description"] = self.description
        if self.default_integration is not None:
            props["defaultIntegration"] = self.default_integration
        return props


class RouteResource(ResourceSpec):
    """Route on an HttpApi integrated with a function."""

    kind = "HttpRoute"
    outputs = ("route_id",)

    def __init__(
        self,
        name: str,
        *,
        api: Any = None,
        path: str | None = None,
        method: str = "ANY",
        target: Any = None,
    ):
        super().__init__(name)
        self.api = require_handle(api, "HttpApi", "api")
        if not path or not isinstance(path, str) or not path.startswith("/"):
            raise ConfigurationError(
                f"Route '{name}': path must start with '/', got {path!r}"
            )
        self.path = path
        self.method = _one_of(str(method).upper(), HTTP_METHODS, "method")
        self.target = require_handle(target, "Function", "target")

    def properties(self) -> dict[str, Any]:
        return {
            "api": self.api,
            "routeKey": f"{self.method} {self.path}",
            "integrationTarget": self.target,
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRIGGERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
def check_timezone(timezone: Any) -> str:
    if not isinstance(timezone, str) or not timezone:
        raise ConfigurationError("timezone is required")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: '{timezone}'") from e
    return timezone


class ScheduleResource(ResourceSpec):
    """Cron-driven invocation of a function."""

    kind = "Schedule"
    outputs = ("schedule_arn",)

    def __init__(
        self,
        name: str,
        *,
        cron: CronExpression | None = None,
        target: Any = None,
        timezone: str = "UTC",
        description: str = "",
        enabled: bool = True,
    ):
        super().__init__(name)
        if not isinstance(cron, CronExpression):
            raise ConfigurationError(f"Schedule '{name}': cron is required")
        self.cron = cron
        self.target = require_handle(target, "Function", "target")
        self.timezone = check_timezone(timezone)
        self.description = description
        self.enabled = bool(enabled)

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "scheduleExpression": str(self.cron),
            "timezone": self.timezone,
            "target": self.target,
            "enabled": self.enabled,
        }
        if self.description:
            props["description"] = self.description
        return props


class EventRuleResource(ResourceSpec):
    """Event-pattern rule invoking a function."""

    kind = "EventRule"
    outputs = ("rule_arn",)

    def __init__(
        self,
        name: str,
        *,
        event_pattern: Mapping[str, Any] | None = None,
        target: Any = None,
        description: str = "",
    ):
        super().__init__(name)
        if not isinstance(event_pattern, Mapping) or not event_pattern:
            raise ConfigurationError(
                f"EventRule '{name}': event_pattern must be a non-empty mapping"
            )
        for key, value in event_pattern.items():
            if not isinstance(value, (list, dict)):
                raise ConfigurationError(
                    f"EventRule '{name}': pattern field '{key}' must be a "
                    f"list or a mapping"
                )
        self.event_pattern = dict(event_pattern)
        self.target = require_handle(target, "Function", "target")
        self.description = description

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "eventPattern": self.event_pattern,
            "target": self.target,
        }
        if self.description:
            props["description"] = self.description
        return props
