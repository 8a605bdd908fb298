"""
Workflow DSL - 工作流 DSL 引擎
"""

__version__ = "1.0.0"

from .dsl import DslParser, DslGenerator, Lexer, NameResolver
from .models.workflow import Workflow, WorkflowNode, Dependency, Track
from .models.validation import ValidationResult
from .validation import ValidationService, create_default_validation_service
from .serialization import SerializationService
from .exceptions import WorkflowDSLError, DSLSyntaxError, DSLResolutionError

__all__ = [
    "DslParser",
    "DslGenerator",
    "Lexer",
    "NameResolver",
    "Workflow",
    "WorkflowNode",
    "Dependency",
    "Track",
    "ValidationResult",
    "ValidationService",
    "create_default_validation_service",
    "SerializationService",
    "WorkflowDSLError",
    "DSLSyntaxError",
    "DSLResolutionError"
]
