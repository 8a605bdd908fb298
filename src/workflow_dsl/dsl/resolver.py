"""
名称引用解析器

解析器产出的工作流中，轨道归属、依赖端点、决策分支目标都还是名称。
解析完成后由本模块把名称绑定到节点/轨道的ID。
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TypeVar

from .grammar import Token
from ..exceptions import DSLResolutionError
from ..models.workflow import (
    Workflow, WorkflowNode, DecisionNode, SyncPointNode, Dependency,
    DependencyType, Condition
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class NodeTrackReference:
    """节点的轨道引用"""
    node: WorkflowNode
    track_name: str
    token: Token


@dataclass
class DependencyReference:
    """依赖两端的节点引用"""
    dependency: Dependency
    source_name: str
    target_name: str
    token: Token


@dataclass
class ConditionTargetReference:
    """决策分支的目标节点引用"""
    node: DecisionNode
    condition: Condition
    target_name: str
    token: Token


@dataclass
class DefaultTargetReference:
    """决策节点的默认目标引用"""
    node: DecisionNode
    target_name: str
    token: Token


@dataclass
class PendingReferences:
    """解析阶段收集的待解析名称引用"""
    node_tracks: List[NodeTrackReference] = field(default_factory=list)
    dependencies: List[DependencyReference] = field(default_factory=list)
    condition_targets: List[ConditionTargetReference] = field(default_factory=list)
    default_targets: List[DefaultTargetReference] = field(default_factory=list)

    def __len__(self) -> int:
        return (
            len(self.node_tracks) + len(self.dependencies)
            + len(self.condition_targets) + len(self.default_targets)
        )


class NameResolver:
    """名称到ID的解析器

    同名节点（或轨道）时解析到文档顺序中的第一个；strict 模式下直接报错。
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def resolve(self, workflow: Workflow, pending: PendingReferences) -> Workflow:
        """
        解析工作流中的全部名称引用

        Args:
            workflow: 解析器产出的工作流
            pending: 待解析的名称引用

        Returns:
            Workflow: 引用已绑定为ID的同一个工作流对象

        Raises:
            DSLResolutionError: 引用的名称不存在，或 strict 模式下名称重复
        """
        nodes = self._index(workflow.nodes, "node")
        tracks = self._index(workflow.tracks, "track")

        for ref in pending.node_tracks:
            track = self._lookup(
                tracks, ref.track_name, f"track of node '{ref.node.name}'", ref.token
            )
            # 重复的 track 属性以最后一个为准
            if ref.node.track_id is not None and ref.node.track_id != track.id:
                previous = workflow.get_track(ref.node.track_id)
                if previous is not None:
                    previous.remove_node(ref.node.id)
            ref.node.track_id = track.id
            track.add_node(ref.node.id)

        for ref in pending.dependencies:
            container = f"dependency '{ref.source_name}' -> '{ref.target_name}'"
            source = self._lookup(nodes, ref.source_name, container, ref.token)
            target = self._lookup(nodes, ref.target_name, container, ref.token)
            ref.dependency.source_id = source.id
            ref.dependency.target_id = target.id

        for ref in pending.condition_targets:
            target = self._lookup(
                nodes, ref.target_name, f"condition of decision '{ref.node.name}'", ref.token
            )
            ref.condition.target_id = target.id

        for ref in pending.default_targets:
            target = self._lookup(
                nodes, ref.target_name, f"default of decision '{ref.node.name}'", ref.token
            )
            ref.node.default_target_id = target.id

        self._bind_sync_sources(workflow)

        logger.debug(f"Resolved {len(pending)} name references in workflow '{workflow.name}'")
        return workflow

    def _index(self, items: List[T], kind: str) -> Dict[str, T]:
        """按名称建立索引，重名时保留第一个"""
        index: Dict[str, T] = {}
        for item in items:
            name = item.name
            if name in index:
                if self.strict:
                    raise DSLResolutionError(
                        name, f"{kind} list",
                        message=f"Duplicate {kind} name '{name}' makes references ambiguous"
                    )
                logger.warning(
                    f"Duplicate {kind} name '{name}', references resolve to the first definition"
                )
                continue
            index[name] = item
        return index

    def _lookup(self, index: Dict[str, T], name: str, container: str, token: Optional[Token]) -> T:
        item = index.get(name)
        if item is None:
            raise DSLResolutionError(
                name,
                container,
                line=token.line if token else None,
                column=token.column if token else None
            )
        return item

    def _bind_sync_sources(self, workflow: Workflow):
        """同步点的必需源节点即指向它的 sync 依赖的源节点（按依赖顺序）"""
        sync_nodes = {
            node.id: node for node in workflow.nodes if isinstance(node, SyncPointNode)
        }
        if not sync_nodes:
            return

        for dependency in workflow.dependencies:
            sync_node = sync_nodes.get(dependency.target_id)
            if sync_node is not None and dependency.type == DependencyType.SYNC:
                sync_node.add_required_source(dependency.source_id)
