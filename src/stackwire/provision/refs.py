"""
stackwire.provision.refs — Output reference resolver.

Rendered properties carry placeholders for physical identifiers
produced by resources applied earlier in the same pass:

  ${stack/resource.attribute}

Example:
    environment:
      LP_DB_TABLE_NAME: "${LeaguePointService/table.table_name}"

After the table step returns {"table_name": "lp-table"}, the function
step is applied with LP_DB_TABLE_NAME = "lp-table".
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from stackwire.errors import RefError

# ${stack/resource.attribute}
_REF_PATTERN = re.compile(r"\$\{([A-Za-z0-9_-]+/[A-Za-z0-9_-]+)\.([a-z_]+)\}")

Outputs = Mapping[str, Mapping[str, str]]


def resolve_refs(properties: dict[str, Any], outputs: Outputs) -> dict[str, Any]:
    """Return a copy of ``properties`` with every placeholder resolved.

    Args:
        properties: rendered step properties
        outputs: resource id -> {attribute: value} of applied resources

    Raises:
        RefError: placeholder for a resource or attribute not applied yet
    """
    return _resolve_value(properties, outputs)


def _resolve_value(value: Any, outputs: Outputs) -> Any:
    if isinstance(value, str):
        return _resolve_string(value, outputs)
    if isinstance(value, dict):
        return {k: _resolve_value(v, outputs) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_value(v, outputs) for v in value]
    return value


def _resolve_string(value: str, outputs: Outputs) -> str:

    def replacer(match: re.Match) -> str:
        resource_id = match.group(1)
        attribute = match.group(2)

        if resource_id not in outputs:
            raise RefError(
                f"Reference to '{resource_id}' before it was applied: '{match.group(0)}'"
            )
        values = outputs[resource_id]
        if attribute not in values:
            raise RefError(
                f"'{resource_id}' has no output '{attribute}'. "
                f"Available: {sorted(values)}"
            )
        return str(values[attribute])

    return _REF_PATTERN.sub(replacer, value)
