"""Project persistence client module."""

from canvas_search.projects.store import HTTPProjectStore, ProjectStore

__all__ = [
    "HTTPProjectStore",
    "ProjectStore",
]
