"""Configuration, environment and logging helpers."""
