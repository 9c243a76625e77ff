"""Core infrastructure shared by the runner, output sinks and CLI."""
