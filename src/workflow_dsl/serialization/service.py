"""
序列化服务：按格式名称分派到已注册的序列化器
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from .serializers import WorkflowSerializer, DslSerializer, JsonSerializer, YamlSerializer
from ..exceptions import WorkflowSerializationError
from ..models.workflow import Workflow


logger = logging.getLogger(__name__)


class SerializationService:
    """序列化器注册表"""

    def __init__(self, strict_names: bool = False):
        self.serializers: Dict[str, WorkflowSerializer] = {}
        self.register_serializer(DslSerializer(strict_names=strict_names))
        self.register_serializer(JsonSerializer())
        self.register_serializer(YamlSerializer())

    def register_serializer(self, serializer: WorkflowSerializer, fmt: Optional[str] = None):
        """注册序列化器，同名格式会被覆盖"""
        name = (fmt or serializer.format_name).lower()
        self.serializers[name] = serializer
        logger.debug(f"Registered serializer for format: {name}")

    def get_serializer(self, fmt: str) -> WorkflowSerializer:
        serializer = self.serializers.get(fmt.lower())
        if serializer is None:
            raise WorkflowSerializationError(
                f"Unsupported format '{fmt}', available: {', '.join(self.get_available_formats())}"
            )
        return serializer

    def get_available_formats(self) -> List[str]:
        return list(self.serializers.keys())

    def serialize(self, workflow: Workflow, fmt: str) -> str:
        return self.get_serializer(fmt).serialize(workflow)

    def deserialize(self, data: str, fmt: str) -> Workflow:
        return self.get_serializer(fmt).deserialize(data)

    def convert(self, data: str, from_fmt: str, to_fmt: str) -> str:
        """格式转换"""
        return self.serialize(self.deserialize(data, from_fmt), to_fmt)

    def detect_format(self, file_path: Union[str, Path]) -> str:
        """根据文件扩展名判断格式，未知扩展名按 DSL 处理"""
        suffix = Path(file_path).suffix.lower()
        for name, serializer in self.serializers.items():
            if suffix in serializer.file_extensions:
                return name
        return DslSerializer.format_name
