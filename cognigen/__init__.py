"""Timed GIA-style cognitive assessment orchestrator."""

__version__ = "1.0.0"
