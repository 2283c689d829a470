"""Kwilt MCP: task handoff server for external coding executors."""

__version__ = "0.1.0"
