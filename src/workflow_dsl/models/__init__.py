"""Workflow graph and validation models"""

from .workflow import (
    Workflow, WorkflowNode, StartNode, EndNode, TaskNode, DecisionNode,
    SyncPointNode, SyncPointConfig, Track, Dependency, Condition,
    ResourceRequirement, NodeType, DependencyType, ResourceType,
    ConditionOperator, create_node, node_from_dict, generate_id,
    MAX_RETRIES
)
from .validation import ValidationError, ValidationResult, ValidationErrorCode

__all__ = [
    "Workflow",
    "WorkflowNode",
    "StartNode",
    "EndNode",
    "TaskNode",
    "DecisionNode",
    "SyncPointNode",
    "SyncPointConfig",
    "Track",
    "Dependency",
    "Condition",
    "ResourceRequirement",
    "NodeType",
    "DependencyType",
    "ResourceType",
    "ConditionOperator",
    "create_node",
    "node_from_dict",
    "generate_id",
    "MAX_RETRIES",
    "ValidationError",
    "ValidationResult",
    "ValidationErrorCode"
]
