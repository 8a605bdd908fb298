"""
图交换格式的 JSON Schema
"""
from typing import Any, Dict, List

from jsonschema import Draft7Validator

from ..models.workflow import NodeType, DependencyType, ResourceType, ConditionOperator


CONDITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["left_operand", "operator", "right_operand"],
    "properties": {
        "left_operand": {"type": "string"},
        "operator": {"type": "string", "enum": [op.value for op in ConditionOperator]},
        "right_operand": {"type": ["string", "number", "boolean"]},
        "target_id": {"type": ["string", "null"]},
        "metadata": {"type": "object"}
    }
}

RESOURCE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["resource_type", "amount"],
    "properties": {
        "resource_type": {"type": "string", "enum": [rt.value for rt in ResourceType]},
        "amount": {"type": "number"},
        "resource_id": {"type": ["string", "null"]},
        "metadata": {"type": "object"}
    }
}

NODE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "name"],
    "properties": {
        "id": {"type": "string"},
        "type": {"type": "string", "enum": [nt.value for nt in NodeType]},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "track_id": {"type": ["string", "null"]},
        "resource_requirements": {"type": "array", "items": RESOURCE_SCHEMA},
        "metadata": {"type": "object"},
        "task_type": {"type": "string"},
        "parameters": {"type": ["object", "null"]},
        "timeout": {"type": ["number", "null"]},
        "retries": {"type": ["integer", "null"]},
        "conditions": {"type": "array", "items": CONDITION_SCHEMA},
        "default_target_id": {"type": ["string", "null"]},
        "config": {
            "type": "object",
            "properties": {
                "required_sources": {"type": "array", "items": {"type": "string"}},
                "wait_for_all": {"type": "boolean"},
                "timeout": {"type": ["number", "null"]},
                "metadata": {"type": "object"}
            }
        }
    }
}

DEPENDENCY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["source_id", "target_id"],
    "properties": {
        "id": {"type": "string"},
        "source_id": {"type": "string"},
        "target_id": {"type": "string"},
        "type": {"type": "string", "enum": [dt.value for dt in DependencyType]},
        "condition": {"oneOf": [CONDITION_SCHEMA, {"type": "null"}]},
        "metadata": {"type": "object"}
    }
}

TRACK_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "node_ids": {"type": "array", "items": {"type": "string"}},
        "metadata": {"type": "object"}
    }
}

WORKFLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Workflow",
    "type": "object",
    "required": ["name", "nodes"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "version": {"type": ["string", "null"]},
        "nodes": {
            "oneOf": [
                {"type": "object", "additionalProperties": NODE_SCHEMA},
                {"type": "array", "items": NODE_SCHEMA}
            ]
        },
        "dependencies": {"type": "array", "items": DEPENDENCY_SCHEMA},
        "tracks": {
            "oneOf": [
                {"type": "object", "additionalProperties": TRACK_SCHEMA},
                {"type": "array", "items": TRACK_SCHEMA}
            ]
        },
        "metadata": {"type": "object"}
    }
}

_validator = Draft7Validator(WORKFLOW_SCHEMA)


def validate_workflow_data(data: Any) -> List[str]:
    """
    按交换格式 Schema 检查数据

    Returns:
        错误列表，如果没有错误返回空列表
    """
    errors = []
    for error in _validator.iter_errors(data):
        path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        errors.append(f"{path}: {error.message}")
    return errors
