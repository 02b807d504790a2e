"""Optional tracing integrations."""
