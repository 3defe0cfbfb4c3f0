"""Completion-driven recurrence for Notion task boards."""

__version__ = "1.2.0"
