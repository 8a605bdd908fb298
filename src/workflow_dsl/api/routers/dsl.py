"""
DSL 解析/生成/验证 API 路由
"""
from fastapi import APIRouter, Depends
import logging

from ..errors import parse_error, serialization_error
from ..models import (
    DslSourceRequest, GenerateRequest, GenerateResponse, ConvertRequest,
    ParseResponse, ValidationResponse, ExportResponse
)
from ..dependencies import (
    get_parser, get_generator, get_validation_service, get_serialization_service
)
from ...exceptions import WorkflowParseError, WorkflowSerializationError


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/parse", response_model=ParseResponse)
async def parse_dsl(
    request: DslSourceRequest,
    parser=Depends(get_parser),
    validation=Depends(get_validation_service)
) -> ParseResponse:
    """解析 DSL 文本，返回工作流及其验证结果"""
    try:
        workflow = parser.parse(request.source)
    except WorkflowParseError as e:
        logger.info(f"DSL parse failed: {e}")
        raise parse_error(e)

    result = validation.validate_workflow(workflow)
    return ParseResponse(
        workflow=workflow.to_dict(),
        validation=ValidationResponse.from_result(result)
    )


@router.post("/generate", response_model=GenerateResponse)
async def generate_dsl(
    request: GenerateRequest,
    generator=Depends(get_generator),
    serialization=Depends(get_serialization_service)
) -> GenerateResponse:
    """根据图交换格式生成 DSL 文本"""
    try:
        workflow = serialization.get_serializer("json").from_dict(request.workflow)
    except WorkflowSerializationError as e:
        raise serialization_error(e)

    return GenerateResponse(dsl=generator.generate(workflow))


@router.post("/validate", response_model=ValidationResponse)
async def validate_dsl(
    request: DslSourceRequest,
    parser=Depends(get_parser),
    validation=Depends(get_validation_service)
) -> ValidationResponse:
    """解析并验证 DSL 文本"""
    try:
        workflow = parser.parse(request.source)
    except WorkflowParseError as e:
        raise parse_error(e)

    return ValidationResponse.from_result(validation.validate_workflow(workflow))


@router.post("/convert", response_model=ExportResponse)
async def convert_workflow(
    request: ConvertRequest,
    serialization=Depends(get_serialization_service)
) -> ExportResponse:
    """在 DSL/JSON/YAML 之间转换"""
    try:
        content = serialization.convert(
            request.source, request.from_format.value, request.to_format.value
        )
    except WorkflowParseError as e:
        raise parse_error(e)
    except WorkflowSerializationError as e:
        raise serialization_error(e)

    return ExportResponse(format=request.to_format, content=content)
