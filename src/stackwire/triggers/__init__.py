"""stackwire.triggers — Schedules and event rules."""
