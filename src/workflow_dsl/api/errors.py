"""
异常到 HTTP 错误的转换
"""
from fastapi import HTTPException, status

from ..exceptions import (
    WorkflowParseError, DSLSyntaxError, WorkflowSerializationError, WorkflowNotFoundError,
    WorkflowValidationError
)


def parse_error(e: WorkflowParseError) -> HTTPException:
    """解析错误 -> 400，带出错位置"""
    error = "syntax_error" if isinstance(e, DSLSyntaxError) else "resolution_error"
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": error,
            "message": str(e),
            "line": getattr(e, "line", None),
            "column": getattr(e, "column", None)
        }
    )


def serialization_error(e: WorkflowSerializationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": "serialization_error",
            "message": str(e)
        }
    )


def not_found_error(e: WorkflowNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "not_found",
            "message": str(e)
        }
    )


def validation_error(e: WorkflowValidationError) -> HTTPException:
    """结构验证未通过 -> 400，附带错误列表"""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": "validation_error",
            "message": str(e),
            "errors": [error.to_dict() for error in e.result.errors] if e.result else []
        }
    )
