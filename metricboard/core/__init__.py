"""Cross-cutting service concerns (logging, telemetry)."""
