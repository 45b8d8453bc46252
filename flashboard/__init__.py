"""Kanban board API scoped per anonymous device, with an optimistic client."""

__version__ = "1.0.0"
