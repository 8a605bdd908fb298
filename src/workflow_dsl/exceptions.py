"""
工作流 DSL 引擎异常定义
"""
from typing import Optional


class WorkflowDSLError(Exception):
    """工作流 DSL 引擎基础异常"""
    pass


class WorkflowParseError(WorkflowDSLError):
    """工作流解析异常"""
    pass


class DSLSyntaxError(WorkflowParseError):
    """词法或语法错误，携带出错位置"""
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        self.reason = message
        super().__init__(f"{message} at line {line}, column {column}")


class DSLResolutionError(WorkflowParseError):
    """名称引用无法解析"""
    def __init__(
        self,
        reference: str,
        container: str,
        message: str = None,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        self.reference = reference
        self.container = container
        self.line = line
        self.column = column
        msg = message or f"Unresolved reference '{reference}' in {container}"
        if line is not None:
            msg += f" at line {line}, column {column}"
        super().__init__(msg)


class WorkflowValidationError(WorkflowDSLError):
    """工作流验证异常"""
    def __init__(self, message: str, result=None):
        self.result = result
        super().__init__(message)


class WorkflowSerializationError(WorkflowDSLError):
    """工作流序列化异常"""
    pass


class WorkflowNotFoundError(WorkflowDSLError):
    """工作流不存在"""
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found")
