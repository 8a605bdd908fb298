"""
工作流定义模型
"""
import copy
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Union
from enum import Enum
from uuid import uuid4


# 任务节点最大重试次数
MAX_RETRIES = 5


def generate_id(prefix: str) -> str:
    """生成带前缀的唯一标识"""
    return f"{prefix}-{uuid4()}"


class NodeType(Enum):
    """节点类型"""
    START = "start"
    END = "end"
    TASK = "task"
    DECISION = "decision"
    SYNC_POINT = "sync_point"


class DependencyType(Enum):
    """依赖类型"""
    SEQUENTIAL = "sequential"    # 顺序依赖
    CONDITIONAL = "conditional"  # 条件依赖
    SYNC = "sync"                # 同步依赖


class ResourceType(Enum):
    """资源类型"""
    CPU = "cpu"
    MEMORY = "memory"
    GPU = "gpu"
    CUSTOM = "custom"


class ConditionOperator(Enum):
    """条件运算符"""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUALS = "greater_than_or_equals"
    LESS_THAN_OR_EQUALS = "less_than_or_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"


ConditionValue = Union[str, int, float, bool]


@dataclass
class Condition:
    """条件表达式"""
    left_operand: str
    operator: ConditionOperator
    right_operand: ConditionValue
    target_id: Optional[str] = None  # 决策节点分支的目标节点ID
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "left_operand": self.left_operand,
            "operator": self.operator.value,
            "right_operand": self.right_operand,
        }
        if self.target_id is not None:
            data["target_id"] = self.target_id
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        return cls(
            left_operand=data["left_operand"],
            operator=ConditionOperator(data["operator"]),
            right_operand=data["right_operand"],
            target_id=data.get("target_id"),
            metadata=dict(data.get("metadata") or {})
        )


@dataclass
class ResourceRequirement:
    """资源需求"""
    resource_type: ResourceType
    amount: float
    resource_id: Optional[str] = None  # 自定义资源名称
    metadata: Dict[str, Any] = field(default_factory=dict)

    def set_amount(self, amount: float):
        """设置资源数量"""
        if amount < 0:
            raise ValueError("Resource amount cannot be negative")
        self.amount = amount

    def is_custom(self) -> bool:
        return self.resource_type == ResourceType.CUSTOM

    @property
    def key(self) -> str:
        """DSL 中使用的资源名称"""
        if self.is_custom():
            return self.resource_id or ResourceType.CUSTOM.value
        return self.resource_type.value

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "resource_type": self.resource_type.value,
            "amount": self.amount,
        }
        if self.resource_id is not None:
            data["resource_id"] = self.resource_id
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceRequirement":
        return cls(
            resource_type=ResourceType(data["resource_type"]),
            amount=data["amount"],
            resource_id=data.get("resource_id"),
            metadata=dict(data.get("metadata") or {})
        )


@dataclass
class SyncPointConfig:
    """同步点配置"""
    required_sources: List[str] = field(default_factory=list)  # 必需的源节点ID
    wait_for_all: bool = True
    timeout: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WorkflowNode:
    """工作流节点基类"""
    type: NodeType = field(init=False, default=NodeType.TASK)
    id: str = field(default_factory=lambda: generate_id("node"))
    name: str = ""
    description: Optional[str] = None
    track_id: Optional[str] = None
    resource_requirements: List[ResourceRequirement] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_resource_requirement(self, requirement: ResourceRequirement):
        self.resource_requirements.append(requirement)

    def remove_resource_requirement(self, index: int) -> bool:
        if index < 0 or index >= len(self.resource_requirements):
            return False
        del self.resource_requirements[index]
        return True

    def assign_to_track(self, track_id: str):
        self.track_id = track_id

    def remove_from_track(self):
        self.track_id = None

    def clone(self) -> "WorkflowNode":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """转换为交换格式"""
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.track_id is not None:
            data["track_id"] = self.track_id
        if self.resource_requirements:
            data["resource_requirements"] = [r.to_dict() for r in self.resource_requirements]
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        data.update(self._extra_fields())
        return data

    def _extra_fields(self) -> Dict[str, Any]:
        return {}


@dataclass
class StartNode(WorkflowNode):
    """开始节点"""
    type: NodeType = field(init=False, default=NodeType.START)
    name: str = "Start"


@dataclass
class EndNode(WorkflowNode):
    """结束节点"""
    type: NodeType = field(init=False, default=NodeType.END)
    name: str = "End"


@dataclass
class TaskNode(WorkflowNode):
    """任务节点"""
    type: NodeType = field(init=False, default=NodeType.TASK)
    task_type: str = "default"
    parameters: Optional[Dict[str, Any]] = None
    timeout: Optional[float] = None  # 超时时间（毫秒）
    retries: Optional[int] = None

    def _extra_fields(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"task_type": self.task_type}
        if self.parameters is not None:
            data["parameters"] = copy.deepcopy(self.parameters)
        if self.timeout is not None:
            data["timeout"] = self.timeout
        if self.retries is not None:
            data["retries"] = self.retries
        return data


@dataclass
class DecisionNode(WorkflowNode):
    """决策节点"""
    type: NodeType = field(init=False, default=NodeType.DECISION)
    conditions: List[Condition] = field(default_factory=list)
    default_target_id: Optional[str] = None

    def add_condition(self, condition: Condition):
        self.conditions.append(condition)

    def remove_condition(self, index: int) -> bool:
        if index < 0 or index >= len(self.conditions):
            return False
        del self.conditions[index]
        return True

    def set_default_target(self, node_id: str):
        self.default_target_id = node_id

    def _extra_fields(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"conditions": [c.to_dict() for c in self.conditions]}
        if self.default_target_id is not None:
            data["default_target_id"] = self.default_target_id
        return data


@dataclass
class SyncPointNode(WorkflowNode):
    """同步点节点"""
    type: NodeType = field(init=False, default=NodeType.SYNC_POINT)
    config: SyncPointConfig = field(default_factory=SyncPointConfig)

    def add_required_source(self, node_id: str):
        if node_id not in self.config.required_sources:
            self.config.required_sources.append(node_id)

    def remove_required_source(self, node_id: str) -> bool:
        if node_id in self.config.required_sources:
            self.config.required_sources.remove(node_id)
            return True
        return False

    def _extra_fields(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "required_sources": list(self.config.required_sources),
            "wait_for_all": self.config.wait_for_all,
        }
        if self.config.timeout is not None:
            config["timeout"] = self.config.timeout
        if self.config.metadata:
            config["metadata"] = dict(self.config.metadata)
        return {"config": config}


NODE_CLASSES = {
    NodeType.START: StartNode,
    NodeType.END: EndNode,
    NodeType.TASK: TaskNode,
    NodeType.DECISION: DecisionNode,
    NodeType.SYNC_POINT: SyncPointNode,
}


def create_node(node_type: NodeType, **kwargs) -> WorkflowNode:
    """根据节点类型创建节点"""
    node_class = NODE_CLASSES.get(node_type)
    if node_class is None:
        raise ValueError(f"Unknown node type: {node_type}")
    return node_class(**kwargs)


def node_from_dict(data: Dict[str, Any]) -> WorkflowNode:
    """从交换格式构建节点"""
    node_type = NodeType(data["type"])
    kwargs: Dict[str, Any] = {
        "name": data.get("name", ""),
        "description": data.get("description"),
        "track_id": data.get("track_id"),
        "resource_requirements": [
            ResourceRequirement.from_dict(r) for r in data.get("resource_requirements") or []
        ],
        "metadata": dict(data.get("metadata") or {}),
    }
    if data.get("id"):
        kwargs["id"] = data["id"]

    if node_type == NodeType.TASK:
        kwargs["task_type"] = data.get("task_type", "default")
        kwargs["parameters"] = copy.deepcopy(data.get("parameters"))
        kwargs["timeout"] = data.get("timeout")
        kwargs["retries"] = data.get("retries")
    elif node_type == NodeType.DECISION:
        kwargs["conditions"] = [Condition.from_dict(c) for c in data.get("conditions") or []]
        kwargs["default_target_id"] = data.get("default_target_id")
    elif node_type == NodeType.SYNC_POINT:
        config = data.get("config") or {}
        kwargs["config"] = SyncPointConfig(
            required_sources=list(config.get("required_sources") or []),
            wait_for_all=config.get("wait_for_all", True),
            timeout=config.get("timeout"),
            metadata=dict(config.get("metadata") or {})
        )

    return create_node(node_type, **kwargs)


@dataclass
class Track:
    """并行轨道"""
    id: str = field(default_factory=lambda: generate_id("track"))
    name: str = "New Track"
    description: Optional[str] = None
    node_ids: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_node(self, node_id: str):
        if node_id not in self.node_ids:
            self.node_ids.append(node_id)

    def remove_node(self, node_id: str) -> bool:
        if node_id in self.node_ids:
            self.node_ids.remove(node_id)
            return True
        return False

    def contains_node(self, node_id: str) -> bool:
        return node_id in self.node_ids

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "node_ids": list(self.node_ids),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        track = cls(
            name=data.get("name", "New Track"),
            description=data.get("description"),
            node_ids=list(data.get("node_ids") or []),
            metadata=dict(data.get("metadata") or {})
        )
        if data.get("id"):
            track.id = data["id"]
        return track


@dataclass
class Dependency:
    """节点间依赖"""
    source_id: str
    target_id: str
    type: DependencyType = DependencyType.SEQUENTIAL
    condition: Optional[Condition] = None
    id: str = field(default_factory=lambda: generate_id("dep"))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def set_condition(self, condition: Condition):
        """设置条件，同时切换为条件依赖"""
        self.condition = condition
        self.type = DependencyType.CONDITIONAL

    def remove_condition(self):
        self.condition = None
        if self.type == DependencyType.CONDITIONAL:
            self.type = DependencyType.SEQUENTIAL

    def is_conditional(self) -> bool:
        return self.type == DependencyType.CONDITIONAL and self.condition is not None

    def is_default(self) -> bool:
        """没有条件的条件依赖即默认分支"""
        return self.type == DependencyType.CONDITIONAL and self.condition is None

    def is_synchronization(self) -> bool:
        return self.type == DependencyType.SYNC

    @property
    def edge_key(self) -> str:
        return f"{self.source_id}->{self.target_id}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": self.type.value,
        }
        if self.condition is not None:
            data["condition"] = self.condition.to_dict()
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        dependency = cls(
            source_id=data["source_id"],
            target_id=data["target_id"],
            type=DependencyType(data.get("type", DependencyType.SEQUENTIAL.value)),
            condition=Condition.from_dict(data["condition"]) if data.get("condition") else None,
            metadata=dict(data.get("metadata") or {})
        )
        if data.get("id"):
            dependency.id = data["id"]
        return dependency


@dataclass
class Workflow:
    """工作流定义"""
    id: str = field(default_factory=lambda: generate_id("workflow"))
    name: str = "New Workflow"
    description: Optional[str] = None
    version: Optional[str] = None
    nodes: List[WorkflowNode] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)
    tracks: List[Track] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_node(self, node: WorkflowNode) -> WorkflowNode:
        """添加节点"""
        self.nodes.append(node)
        return node

    def remove_node(self, node_id: str) -> bool:
        """删除节点，同时清理相关依赖和轨道成员"""
        initial_length = len(self.nodes)
        self.nodes = [node for node in self.nodes if node.id != node_id]

        self.dependencies = [
            dep for dep in self.dependencies
            if dep.source_id != node_id and dep.target_id != node_id
        ]

        for track in self.tracks:
            track.remove_node(node_id)

        return len(self.nodes) != initial_length

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """根据ID获取节点"""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_node_by_name(self, name: str) -> Optional[WorkflowNode]:
        """按名称获取节点（同名时返回第一个）"""
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def add_dependency(self, dependency: Dependency) -> Dependency:
        self.dependencies.append(dependency)
        return dependency

    def remove_dependency(self, source_id: str, target_id: str) -> bool:
        """删除两个节点之间的所有依赖"""
        initial_length = len(self.dependencies)
        self.dependencies = [
            dep for dep in self.dependencies
            if not (dep.source_id == source_id and dep.target_id == target_id)
        ]
        return len(self.dependencies) != initial_length

    def add_track(self, track: Track) -> Track:
        self.tracks.append(track)
        return track

    def remove_track(self, track_id: str) -> bool:
        """删除轨道，成员节点脱离该轨道"""
        initial_length = len(self.tracks)
        self.tracks = [track for track in self.tracks if track.id != track_id]
        for node in self.nodes:
            if node.track_id == track_id:
                node.remove_from_track()
        return len(self.tracks) != initial_length

    def get_track(self, track_id: str) -> Optional[Track]:
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def get_nodes_in_track(self, track_id: str) -> List[WorkflowNode]:
        track = self.get_track(track_id)
        if not track:
            return []
        return [node for node in self.nodes if node.id in track.node_ids]

    def get_dependencies_for_node(self, node_id: str) -> List[Dependency]:
        return [
            dep for dep in self.dependencies
            if dep.source_id == node_id or dep.target_id == node_id
        ]

    def get_incoming_dependencies(self, node_id: str) -> List[Dependency]:
        return [dep for dep in self.dependencies if dep.target_id == node_id]

    def get_outgoing_dependencies(self, node_id: str) -> List[Dependency]:
        return [dep for dep in self.dependencies if dep.source_id == node_id]

    def get_start_nodes(self) -> List[WorkflowNode]:
        return [node for node in self.nodes if node.type == NodeType.START]

    def get_end_nodes(self) -> List[WorkflowNode]:
        return [node for node in self.nodes if node.type == NodeType.END]

    def has_valid_structure(self) -> bool:
        """至少一个开始节点和一个结束节点"""
        return bool(self.get_start_nodes()) and bool(self.get_end_nodes())

    def clone(self) -> "Workflow":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """转换为图交换格式（节点和轨道按ID索引）"""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.version is not None:
            data["version"] = self.version
        data["nodes"] = {node.id: node.to_dict() for node in self.nodes}
        data["dependencies"] = [dep.to_dict() for dep in self.dependencies]
        data["tracks"] = {track.id: track.to_dict() for track in self.tracks}
        if self.metadata:
            data["metadata"] = copy.deepcopy(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workflow":
        """从图交换格式构建工作流"""
        nodes_data = data.get("nodes") or {}
        if isinstance(nodes_data, dict):
            nodes_data = [dict(node, id=node.get("id", node_id)) for node_id, node in nodes_data.items()]

        tracks_data = data.get("tracks") or {}
        if isinstance(tracks_data, dict):
            tracks_data = [dict(track, id=track.get("id", track_id)) for track_id, track in tracks_data.items()]

        workflow = cls(
            name=data.get("name", "New Workflow"),
            description=data.get("description"),
            version=data.get("version"),
            nodes=[node_from_dict(node) for node in nodes_data],
            dependencies=[Dependency.from_dict(dep) for dep in data.get("dependencies") or []],
            tracks=[Track.from_dict(track) for track in tracks_data],
            metadata=copy.deepcopy(data.get("metadata") or {})
        )
        if data.get("id"):
            workflow.id = data["id"]
        return workflow
