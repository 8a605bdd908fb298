"""Workflow serialization formats"""

from .serializers import WorkflowSerializer, DslSerializer, JsonSerializer, YamlSerializer
from .schema import WORKFLOW_SCHEMA, validate_workflow_data
from .service import SerializationService

__all__ = [
    "WorkflowSerializer",
    "DslSerializer",
    "JsonSerializer",
    "YamlSerializer",
    "WORKFLOW_SCHEMA",
    "validate_workflow_data",
    "SerializationService"
]
