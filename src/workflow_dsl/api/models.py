"""
API 请求和响应模型
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from enum import Enum

from ..models.validation import ValidationResult
from ..models.workflow import Workflow


class FormatEnum(str, Enum):
    """序列化格式枚举（API）"""
    DSL = "dsl"
    JSON = "json"
    YAML = "yaml"


# DSL 相关模型

class DslSourceRequest(BaseModel):
    """DSL 文本请求"""
    source: str = Field(..., description="DSL 文本")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "source": 'workflow "Hello" {\n  start "Begin" {}\n  end "Done" {}\n'
                          '  dependencies {\n    "Begin" -> "Done"\n  }\n}\n'
            }
        }
    )


class GenerateRequest(BaseModel):
    """DSL 生成请求"""
    workflow: Dict[str, Any] = Field(..., description="图交换格式的工作流")


class GenerateResponse(BaseModel):
    """DSL 生成响应"""
    dsl: str = Field(..., description="生成的 DSL 文本")


class ValidationErrorModel(BaseModel):
    """验证错误"""
    code: str = Field(..., description="错误码")
    message: str = Field(..., description="错误描述")
    node_id: Optional[str] = Field(None, description="相关节点ID")
    dependency_ids: Optional[List[str]] = Field(None, description="相关依赖ID")
    track_id: Optional[str] = Field(None, description="相关轨道ID")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="附加信息")


class ValidationResponse(BaseModel):
    """验证结果"""
    valid: bool = Field(..., description="是否通过验证")
    errors: List[ValidationErrorModel] = Field(default_factory=list, description="错误列表")

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(**result.to_dict())


class ConvertRequest(BaseModel):
    """格式转换请求"""
    source: str = Field(..., description="源文本")
    from_format: FormatEnum = Field(FormatEnum.DSL, description="源格式")
    to_format: FormatEnum = Field(..., description="目标格式")


class ParseResponse(BaseModel):
    """DSL 解析响应"""
    workflow: Dict[str, Any] = Field(..., description="图交换格式的工作流")
    validation: ValidationResponse = Field(..., description="结构验证结果")


# 工作流存储相关模型

class WorkflowCreateRequest(BaseModel):
    """创建工作流请求"""
    source: str = Field(..., description="工作流文本")
    format: FormatEnum = Field(FormatEnum.DSL, description="文本格式")
    require_valid: bool = Field(False, description="结构验证未通过时拒绝保存")


class WorkflowCloneRequest(BaseModel):
    """克隆工作流请求"""
    name: Optional[str] = Field(None, description="新工作流名称")


class WorkflowResponse(BaseModel):
    """工作流摘要"""
    id: str = Field(..., description="工作流ID")
    name: str = Field(..., description="工作流名称")
    description: Optional[str] = Field(None, description="描述")
    version: Optional[str] = Field(None, description="版本号")
    node_count: int = Field(..., description="节点数量")
    dependency_count: int = Field(..., description="依赖数量")
    track_count: int = Field(..., description="轨道数量")

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> "WorkflowResponse":
        return cls(
            id=workflow.id,
            name=workflow.name,
            description=workflow.description,
            version=workflow.version,
            node_count=len(workflow.nodes),
            dependency_count=len(workflow.dependencies),
            track_count=len(workflow.tracks)
        )


class WorkflowDetailResponse(WorkflowResponse):
    """工作流详情"""
    workflow: Dict[str, Any] = Field(..., description="图交换格式的工作流")

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> "WorkflowDetailResponse":
        summary = WorkflowResponse.from_workflow(workflow)
        return cls(**summary.model_dump(), workflow=workflow.to_dict())


class ExportResponse(BaseModel):
    """导出响应"""
    format: FormatEnum = Field(..., description="导出格式")
    content: str = Field(..., description="导出内容")


# 通用响应模型

class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str = Field(..., description="服务状态")
    version: str = Field(..., description="服务版本")
    workflow_count: int = Field(..., description="已存储的工作流数量")


class ErrorResponse(BaseModel):
    """错误响应"""
    error: str = Field(..., description="错误类型")
    message: str = Field(..., description="错误信息")
    line: Optional[int] = Field(None, description="出错行号")
    column: Optional[int] = Field(None, description="出错列号")


class SuccessResponse(BaseModel):
    """成功响应"""
    success: bool = Field(True, description="是否成功")
    message: Optional[str] = Field(None, description="消息")
