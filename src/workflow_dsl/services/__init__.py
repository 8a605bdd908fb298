"""Workflow management services"""

from .workflow_service import WorkflowService

__all__ = ["WorkflowService"]
