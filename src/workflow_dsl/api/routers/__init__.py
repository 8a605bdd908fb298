"""API routers"""

from . import dsl, workflows

__all__ = ["dsl", "workflows"]
