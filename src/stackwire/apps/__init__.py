"""stackwire.apps — Composed applications."""
