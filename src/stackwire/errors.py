"""
stackwire.errors — Error taxonomy.

Every error raised during composition is fatal to the pass and
is never retried: composition is pure, so the caller fixes the
input and runs it again.
"""

from __future__ import annotations


class StackwireError(Exception):
    """Base class for all stackwire errors."""
    pass


class ConfigurationError(StackwireError):
    """Malformed or missing resource field, cron field or named value."""
    pass


class InvalidReferenceError(ConfigurationError):
    """A handle used outside the scope it was exported to."""
    pass


class TopologyError(StackwireError):
    """Cycle in the stack or resource graph."""
    pass


class RefError(StackwireError):
    """Output reference resolution error."""
    pass


class ProvisioningError(StackwireError):
    """A single apply call failed.

    Raised by drivers. Carries the identity of the failing resource.
    """

    def __init__(self, resource_id: str, message: str):
        super().__init__(f"{resource_id}: {message}")
        self.resource_id = resource_id
        self.message = message
