"""
stackwire.core.exports — Cross-stack export handles.

An ExportHandle is the only way a resource crosses a stack boundary.
The consuming stack receives it as a constructor input, so the
producing stack must already exist and be fully constructed:

    with Stack(app, "bot") as bot:
        handler = bot.declare(FunctionResource("handler", ...))
        handler_export = bot.export(handler)

    with Stack(app, "lp", imports=[handler_export]) as lp:
        table = lp.declare(TableResource("table", partition_key="id"))
        lp.grant(handler_export, table)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stackwire.core.resource import OutputRef, ResourceHandle

if TYPE_CHECKING:
    from stackwire.core.stack import Stack


class ExportHandle:
    """Typed, read-only reference to a resource owned by another stack."""

    def __init__(self, producer: Stack, handle: ResourceHandle):
        self.producer = producer
        self.handle = handle

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def kind(self) -> str:
        return self.handle.kind

    @property
    def id(self) -> str:
        return self.handle.id

    def output(self, attribute: str) -> OutputRef:
        return self.handle.output(attribute)

    def __repr__(self) -> str:
        return f"<export {self.kind} {self.id}>"
