"""
FastAPI 依赖注入
"""
from fastapi import HTTPException, status
from typing import Dict, Any
import logging

from ..dsl import DslParser, DslGenerator
from ..serialization import SerializationService
from ..services import WorkflowService
from ..validation import ValidationService


logger = logging.getLogger(__name__)


# 全局实例（由应用生命周期填充）
app_state: Dict[str, Any] = {}


def get_app_state() -> Dict[str, Any]:
    """获取应用状态"""
    return app_state


def _get_component(key: str, label: str):
    component = app_state.get(key)
    if component is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "service_unavailable",
                "message": f"{label} not initialized"
            }
        )
    return component


def get_parser() -> DslParser:
    """获取 DSL 解析器"""
    return _get_component("parser", "DSL parser")


def get_generator() -> DslGenerator:
    """获取 DSL 生成器"""
    return _get_component("generator", "DSL generator")


def get_validation_service() -> ValidationService:
    """获取验证服务"""
    return _get_component("validation", "Validation service")


def get_serialization_service() -> SerializationService:
    """获取序列化服务"""
    return _get_component("serialization", "Serialization service")


def get_workflow_service() -> WorkflowService:
    """获取工作流管理服务"""
    return _get_component("workflow_service", "Workflow service")
