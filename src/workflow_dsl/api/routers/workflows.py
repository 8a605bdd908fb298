"""
工作流存储 API 路由
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
import logging

from ..errors import parse_error, serialization_error, not_found_error, validation_error
from ..models import (
    WorkflowCreateRequest, WorkflowCloneRequest, WorkflowResponse,
    WorkflowDetailResponse, ValidationResponse, ExportResponse, FormatEnum,
    SuccessResponse
)
from ..dependencies import get_workflow_service
from ...exceptions import (
    WorkflowParseError, WorkflowSerializationError, WorkflowNotFoundError, WorkflowValidationError
)


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    request: WorkflowCreateRequest,
    service=Depends(get_workflow_service)
) -> WorkflowResponse:
    """从 DSL/JSON/YAML 文本创建工作流"""
    try:
        workflow = await service.create_workflow(
            request.source, request.format.value, require_valid=request.require_valid
        )
    except WorkflowParseError as e:
        raise parse_error(e)
    except WorkflowSerializationError as e:
        raise serialization_error(e)
    except WorkflowValidationError as e:
        logger.info(f"Rejected invalid workflow: {e}")
        raise validation_error(e)

    return WorkflowResponse.from_workflow(workflow)


@router.get("", response_model=List[WorkflowResponse])
async def list_workflows(
    offset: int = Query(0, ge=0, description="偏移量"),
    limit: int = Query(100, ge=1, le=1000, description="数量限制"),
    name: Optional[str] = Query(None, description="按名称过滤"),
    service=Depends(get_workflow_service)
) -> List[WorkflowResponse]:
    """列出工作流"""
    workflows = await service.list_workflows(offset=offset, limit=limit, name=name)
    return [WorkflowResponse.from_workflow(w) for w in workflows]


@router.get("/{workflow_id}", response_model=WorkflowDetailResponse)
async def get_workflow(
    workflow_id: str,
    service=Depends(get_workflow_service)
) -> WorkflowDetailResponse:
    """获取工作流详情"""
    try:
        workflow = await service.get_workflow(workflow_id)
    except WorkflowNotFoundError as e:
        raise not_found_error(e)

    return WorkflowDetailResponse.from_workflow(workflow)


@router.delete("/{workflow_id}", response_model=SuccessResponse)
async def delete_workflow(
    workflow_id: str,
    service=Depends(get_workflow_service)
) -> SuccessResponse:
    """删除工作流"""
    try:
        await service.delete_workflow(workflow_id)
    except WorkflowNotFoundError as e:
        raise not_found_error(e)

    return SuccessResponse(message=f"Workflow {workflow_id} deleted")


@router.post(
    "/{workflow_id}/clone",
    response_model=WorkflowResponse,
    status_code=status.HTTP_201_CREATED
)
async def clone_workflow(
    workflow_id: str,
    request: Optional[WorkflowCloneRequest] = None,
    service=Depends(get_workflow_service)
) -> WorkflowResponse:
    """克隆工作流"""
    try:
        clone = await service.clone_workflow(workflow_id, name=request.name if request else None)
    except WorkflowNotFoundError as e:
        raise not_found_error(e)

    return WorkflowResponse.from_workflow(clone)


@router.get("/{workflow_id}/validate", response_model=ValidationResponse)
async def validate_workflow(
    workflow_id: str,
    service=Depends(get_workflow_service)
) -> ValidationResponse:
    """验证已存储的工作流"""
    try:
        result = await service.validate_workflow(workflow_id)
    except WorkflowNotFoundError as e:
        raise not_found_error(e)

    return ValidationResponse.from_result(result)


@router.get("/{workflow_id}/export", response_model=ExportResponse)
async def export_workflow(
    workflow_id: str,
    format: FormatEnum = Query(FormatEnum.DSL, description="导出格式"),
    service=Depends(get_workflow_service)
) -> ExportResponse:
    """导出工作流"""
    try:
        content = await service.export_workflow(workflow_id, format.value)
    except WorkflowNotFoundError as e:
        raise not_found_error(e)

    return ExportResponse(format=format, content=content)
