"""
验证结果模型
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from enum import Enum


class ValidationErrorCode(Enum):
    """验证错误码"""
    CIRCULAR_DEPENDENCY = "circular_dependency"
    MISSING_START_NODE = "missing_start_node"
    MISSING_END_NODE = "missing_end_node"
    ORPHANED_NODE = "orphaned_node"
    INVALID_DEPENDENCY = "invalid_dependency"
    INVALID_CONDITION = "invalid_condition"
    INVALID_SYNC_POINT = "invalid_sync_point"
    INVALID_RESOURCE_REQUIREMENT = "invalid_resource_requirement"
    INVALID_TRACK_REFERENCE = "invalid_track_reference"
    DUPLICATE_NODE_ID = "duplicate_node_id"
    DUPLICATE_TRACK_ID = "duplicate_track_id"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    VALIDATOR_FAILURE = "validator_failure"


@dataclass
class ValidationError:
    """结构验证错误（数据，而非异常）"""
    code: ValidationErrorCode
    message: str
    node_id: Optional[str] = None
    dependency_ids: Optional[List[str]] = None
    track_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.node_id is not None:
            data["node_id"] = self.node_id
        if self.dependency_ids is not None:
            data["dependency_ids"] = list(self.dependency_ids)
        if self.track_id is not None:
            data["track_id"] = self.track_id
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass
class ValidationResult:
    """验证结果"""
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)

    def errors_with_code(self, code: ValidationErrorCode) -> List[ValidationError]:
        return [error for error in self.errors if error.code == code]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
        }
