"""stackwire.core — Declarative resource model."""
