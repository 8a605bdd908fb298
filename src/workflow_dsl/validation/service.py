"""
验证服务

按注册顺序运行验证器并汇总结果。
"""
import logging
from typing import List, Optional

from .validators import (
    WorkflowValidator, CircularDependencyValidator, OrphanedNodeValidator,
    StructureValidator, ReferenceIntegrityValidator, NodeConfigurationValidator
)
from ..models.workflow import Workflow
from ..models.validation import ValidationError, ValidationErrorCode, ValidationResult


logger = logging.getLogger(__name__)


class ValidationService:
    """验证器注册表"""

    def __init__(self, validators: Optional[List[WorkflowValidator]] = None):
        self.validators: List[WorkflowValidator] = list(validators or [])

    def register_validator(self, validator: WorkflowValidator):
        """注册验证器（追加到末尾）"""
        self.validators.append(validator)
        logger.debug(f"Registered validator: {type(validator).__name__}")

    def validate_workflow(self, workflow: Workflow) -> ValidationResult:
        """
        运行全部验证器

        验证器自身抛出的异常会被记录并转为 validator_failure 错误，
        不会中断其余验证器。

        Args:
            workflow: 待验证的工作流

        Returns:
            ValidationResult: 没有任何错误时 valid 为 True
        """
        errors: List[ValidationError] = []

        for validator in self.validators:
            name = type(validator).__name__
            try:
                errors.extend(validator.validate(workflow))
            except Exception as e:
                logger.error(f"Validator {name} failed: {str(e)}", exc_info=True)
                errors.append(ValidationError(
                    code=ValidationErrorCode.VALIDATOR_FAILURE,
                    message=f"Validator {name} failed: {str(e)}",
                    metadata={"validator": name}
                ))

        logger.info(
            f"Validated workflow '{workflow.name}' with {len(self.validators)} validators: "
            f"{len(errors)} errors"
        )
        return ValidationResult(valid=not errors, errors=errors)


def create_default_validation_service() -> ValidationService:
    """创建注册了全部内置验证器的验证服务"""
    return ValidationService([
        StructureValidator(),
        CircularDependencyValidator(),
        OrphanedNodeValidator(),
        ReferenceIntegrityValidator(),
        NodeConfigurationValidator(),
    ])
