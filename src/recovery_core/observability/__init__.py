"""In-process telemetry collectors."""
