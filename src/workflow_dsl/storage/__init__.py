"""Workflow storage"""

from .repository import WorkflowRepository, InMemoryWorkflowRepository

__all__ = [
    "WorkflowRepository",
    "InMemoryWorkflowRepository"
]
