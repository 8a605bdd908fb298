"""
工作流序列化器实现
"""
from abc import ABC, abstractmethod
from typing import Any, Dict
import json
import logging

import yaml

from .schema import validate_workflow_data
from ..dsl.generator import DslGenerator
from ..dsl.parser import DslParser
from ..exceptions import WorkflowSerializationError
from ..models.workflow import Workflow


logger = logging.getLogger(__name__)


class WorkflowSerializer(ABC):
    """工作流序列化器接口"""

    format_name: str = ""
    content_type: str = "text/plain"
    file_extensions: tuple = ()

    @abstractmethod
    def serialize(self, workflow: Workflow) -> str:
        """工作流 -> 文本"""
        pass

    @abstractmethod
    def deserialize(self, data: str) -> Workflow:
        """文本 -> 工作流"""
        pass


class DslSerializer(WorkflowSerializer):
    """DSL 文本格式"""

    format_name = "dsl"
    file_extensions = (".wf", ".dsl")

    def __init__(self, strict_names: bool = False):
        self.parser = DslParser(strict_names=strict_names)
        self.generator = DslGenerator()

    def serialize(self, workflow: Workflow) -> str:
        return self.generator.generate(workflow)

    def deserialize(self, data: str) -> Workflow:
        # 解析错误携带行列信息，原样抛出
        return self.parser.parse(data)


class _DictSerializer(WorkflowSerializer):
    """基于图交换结构的格式（JSON/YAML）"""

    def deserialize(self, data: str) -> Workflow:
        try:
            raw = self._load(data)
        except (ValueError, yaml.YAMLError) as e:
            raise WorkflowSerializationError(f"Invalid {self.format_name.upper()}: {str(e)}")

        return self.from_dict(raw)

    def from_dict(self, raw: Any) -> Workflow:
        errors = validate_workflow_data(raw)
        if errors:
            raise WorkflowSerializationError(
                f"Workflow data does not match schema: {'; '.join(errors)}"
            )
        try:
            workflow = Workflow.from_dict(raw)
        except (KeyError, ValueError, TypeError) as e:
            raise WorkflowSerializationError(f"Failed to build workflow: {str(e)}")

        logger.debug(f"Deserialized workflow '{workflow.name}' from {self.format_name}")
        return workflow

    @abstractmethod
    def _load(self, data: str) -> Any:
        pass


class JsonSerializer(_DictSerializer):
    """JSON 格式"""

    format_name = "json"
    content_type = "application/json"
    file_extensions = (".json",)

    def __init__(self, indent: int = 2):
        self.indent = indent

    def serialize(self, workflow: Workflow) -> str:
        return json.dumps(workflow.to_dict(), indent=self.indent, ensure_ascii=False)

    def _load(self, data: str) -> Dict[str, Any]:
        return json.loads(data)


class YamlSerializer(_DictSerializer):
    """YAML 格式"""

    format_name = "yaml"
    content_type = "application/x-yaml"
    file_extensions = (".yaml", ".yml")

    def serialize(self, workflow: Workflow) -> str:
        return yaml.safe_dump(
            workflow.to_dict(), allow_unicode=True, sort_keys=False, default_flow_style=False
        )

    def _load(self, data: str) -> Dict[str, Any]:
        return yaml.safe_load(data)
