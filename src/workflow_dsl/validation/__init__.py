"""Structural workflow validation"""

from .validators import (
    WorkflowValidator,
    CircularDependencyValidator,
    OrphanedNodeValidator,
    StructureValidator,
    ReferenceIntegrityValidator,
    NodeConfigurationValidator
)
from .service import ValidationService, create_default_validation_service

__all__ = [
    "WorkflowValidator",
    "CircularDependencyValidator",
    "OrphanedNodeValidator",
    "StructureValidator",
    "ReferenceIntegrityValidator",
    "NodeConfigurationValidator",
    "ValidationService",
    "create_default_validation_service"
]
