"""
工作流结构验证器

每个验证器只读取工作流并返回错误列表，不修改工作流，也不抛出验证失败。
"""
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, List, Set

from ..models.workflow import (
    Workflow, WorkflowNode, TaskNode, DecisionNode, SyncPointNode, Dependency,
    NodeType, MAX_RETRIES
)
from ..models.validation import ValidationError, ValidationErrorCode


class WorkflowValidator(ABC):
    """工作流验证器接口"""

    @abstractmethod
    def validate(self, workflow: Workflow) -> List[ValidationError]:
        """验证工作流，返回发现的错误"""
        pass


# DFS 着色
_WHITE, _GRAY, _BLACK = 0, 1, 2


class CircularDependencyValidator(WorkflowValidator):
    """循环依赖检测

    对所有类型的依赖做迭代式深度优先遍历，每条回边报告一个环。
    引用了不存在节点的依赖在这里被忽略，由 ReferenceIntegrityValidator 报告。
    """

    def validate(self, workflow: Workflow) -> List[ValidationError]:
        errors: List[ValidationError] = []

        adjacency: Dict[str, List[Dependency]] = {}
        for dependency in workflow.dependencies:
            adjacency.setdefault(dependency.source_id, []).append(dependency)

        names = {node.id: node.name for node in workflow.nodes}
        color = {node.id: _WHITE for node in workflow.nodes}

        for node in workflow.nodes:
            if color[node.id] != _WHITE:
                continue

            color[node.id] = _GRAY
            path = [node.id]
            path_edges: List[Dependency] = []
            stack = [iter(adjacency.get(node.id, []))]

            while stack:
                dependency = next(stack[-1], None)

                if dependency is None:
                    # 当前节点探索完毕
                    color[path.pop()] = _BLACK
                    stack.pop()
                    if path_edges:
                        path_edges.pop()
                    continue

                target = dependency.target_id
                state = color.get(target)

                if state is None or state == _BLACK:
                    continue

                if state == _GRAY:
                    index = path.index(target)
                    errors.append(self._cycle_error(
                        path[index:], path_edges[index:] + [dependency], names
                    ))
                    continue

                color[target] = _GRAY
                path.append(target)
                path_edges.append(dependency)
                stack.append(iter(adjacency.get(target, [])))

        return errors

    def _cycle_error(
        self,
        cycle: List[str],
        edges: List[Dependency],
        names: Dict[str, str]
    ) -> ValidationError:
        labels = [names.get(node_id, node_id) for node_id in cycle]
        description = " -> ".join(labels + [labels[0]])
        return ValidationError(
            code=ValidationErrorCode.CIRCULAR_DEPENDENCY,
            message=f"Circular dependency detected: {description}",
            node_id=cycle[0],
            dependency_ids=[edge.id for edge in edges],
            metadata={
                "cycle": list(cycle),
                "edges": [edge.edge_key for edge in edges]
            }
        )


class OrphanedNodeValidator(WorkflowValidator):
    """孤立节点检测（开始/结束节点除外）"""

    def validate(self, workflow: Workflow) -> List[ValidationError]:
        connected: Set[str] = set()
        for dependency in workflow.dependencies:
            connected.add(dependency.source_id)
            connected.add(dependency.target_id)

        errors = []
        for node in workflow.nodes:
            if node.type in (NodeType.START, NodeType.END):
                continue
            if node.id not in connected:
                errors.append(ValidationError(
                    code=ValidationErrorCode.ORPHANED_NODE,
                    message=f"Node '{node.name}' has no incoming or outgoing dependencies",
                    node_id=node.id
                ))
        return errors


class StructureValidator(WorkflowValidator):
    """至少一个开始节点和一个结束节点"""

    def validate(self, workflow: Workflow) -> List[ValidationError]:
        errors = []
        if not workflow.get_start_nodes():
            errors.append(ValidationError(
                code=ValidationErrorCode.MISSING_START_NODE,
                message="Workflow must have at least one start node"
            ))
        if not workflow.get_end_nodes():
            errors.append(ValidationError(
                code=ValidationErrorCode.MISSING_END_NODE,
                message="Workflow must have at least one end node"
            ))
        return errors


class ReferenceIntegrityValidator(WorkflowValidator):
    """ID 唯一性与引用完整性"""

    def validate(self, workflow: Workflow) -> List[ValidationError]:
        errors: List[ValidationError] = []

        node_ids = {node.id for node in workflow.nodes}
        track_ids = {track.id for track in workflow.tracks}

        for node_id, count in Counter(node.id for node in workflow.nodes).items():
            if count > 1:
                errors.append(ValidationError(
                    code=ValidationErrorCode.DUPLICATE_NODE_ID,
                    message=f"Node id '{node_id}' is used by {count} nodes",
                    node_id=node_id
                ))

        for track_id, count in Counter(track.id for track in workflow.tracks).items():
            if count > 1:
                errors.append(ValidationError(
                    code=ValidationErrorCode.DUPLICATE_TRACK_ID,
                    message=f"Track id '{track_id}' is used by {count} tracks",
                    track_id=track_id
                ))

        for dependency in workflow.dependencies:
            for endpoint in (dependency.source_id, dependency.target_id):
                if endpoint not in node_ids:
                    errors.append(ValidationError(
                        code=ValidationErrorCode.INVALID_DEPENDENCY,
                        message=f"Dependency '{dependency.edge_key}' references unknown node '{endpoint}'",
                        dependency_ids=[dependency.id]
                    ))
            if dependency.is_synchronization() and dependency.target_id in node_ids:
                if not isinstance(workflow.get_node(dependency.target_id), SyncPointNode):
                    errors.append(ValidationError(
                        code=ValidationErrorCode.INVALID_DEPENDENCY,
                        message=f"Sync dependency '{dependency.edge_key}' does not target a sync point",
                        dependency_ids=[dependency.id]
                    ))

        for node in workflow.nodes:
            if node.track_id is not None and node.track_id not in track_ids:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_TRACK_REFERENCE,
                    message=f"Node '{node.name}' references unknown track '{node.track_id}'",
                    node_id=node.id,
                    track_id=node.track_id
                ))
            if isinstance(node, DecisionNode):
                errors.extend(self._check_decision(
                    node, node_ids, bool(workflow.get_outgoing_dependencies(node.id))
                ))
            elif isinstance(node, SyncPointNode):
                errors.extend(self._check_sync_point(node, workflow, node_ids))

        for track in workflow.tracks:
            for member_id in track.node_ids:
                if member_id not in node_ids:
                    errors.append(ValidationError(
                        code=ValidationErrorCode.INVALID_TRACK_REFERENCE,
                        message=f"Track '{track.name}' contains unknown node '{member_id}'",
                        node_id=member_id,
                        track_id=track.id
                    ))

        return errors

    def _check_decision(
        self,
        node: DecisionNode,
        node_ids: Set[str],
        has_outgoing: bool
    ) -> List[ValidationError]:
        errors = []
        if not node.conditions and node.default_target_id is None and not has_outgoing:
            errors.append(ValidationError(
                code=ValidationErrorCode.INVALID_CONDITION,
                message=f"Decision '{node.name}' has no branches",
                node_id=node.id
            ))
        for condition in node.conditions:
            if condition.target_id not in node_ids:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_CONDITION,
                    message=f"Condition of decision '{node.name}' targets unknown node '{condition.target_id}'",
                    node_id=node.id
                ))
        if node.default_target_id is not None and node.default_target_id not in node_ids:
            errors.append(ValidationError(
                code=ValidationErrorCode.INVALID_CONDITION,
                message=f"Default target of decision '{node.name}' is unknown node '{node.default_target_id}'",
                node_id=node.id
            ))
        return errors

    def _check_sync_point(
        self,
        node: SyncPointNode,
        workflow: Workflow,
        node_ids: Set[str]
    ) -> List[ValidationError]:
        """必需源节点必须存在，且与指向同步点的 sync 依赖一一对应"""
        errors = []
        sync_sources = [
            dep.source_id for dep in workflow.get_incoming_dependencies(node.id)
            if dep.is_synchronization()
        ]

        for source_id in node.config.required_sources:
            if source_id not in node_ids:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_SYNC_POINT,
                    message=f"Sync point '{node.name}' waits for unknown node '{source_id}'",
                    node_id=node.id,
                    metadata={"source_id": source_id}
                ))
            elif source_id not in sync_sources:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_SYNC_POINT,
                    message=f"Sync point '{node.name}' waits for '{source_id}' without a sync dependency",
                    node_id=node.id,
                    metadata={"source_id": source_id}
                ))

        for source_id in dict.fromkeys(sync_sources):
            if source_id not in node.config.required_sources:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_SYNC_POINT,
                    message=f"Sync dependency from '{source_id}' is not a required source of '{node.name}'",
                    node_id=node.id,
                    metadata={"source_id": source_id}
                ))
        return errors


class NodeConfigurationValidator(WorkflowValidator):
    """节点配置检查：必填字段、资源需求、重试次数"""

    def validate(self, workflow: Workflow) -> List[ValidationError]:
        errors: List[ValidationError] = []
        for node in workflow.nodes:
            errors.extend(self._check_node(node))
        return errors

    def _check_node(self, node: WorkflowNode) -> List[ValidationError]:
        errors = []

        if not node.name or not node.name.strip():
            errors.append(ValidationError(
                code=ValidationErrorCode.MISSING_REQUIRED_FIELD,
                message=f"Node '{node.id}' has an empty name",
                node_id=node.id,
                metadata={"field": "name"}
            ))

        for requirement in node.resource_requirements:
            if requirement.amount < 0:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_RESOURCE_REQUIREMENT,
                    message=f"Node '{node.name}' requests a negative amount of {requirement.key}",
                    node_id=node.id
                ))
            if requirement.is_custom() and not requirement.resource_id:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_RESOURCE_REQUIREMENT,
                    message=f"Node '{node.name}' has a custom resource without a resource id",
                    node_id=node.id
                ))

        if isinstance(node, TaskNode):
            if not node.task_type:
                errors.append(ValidationError(
                    code=ValidationErrorCode.MISSING_REQUIRED_FIELD,
                    message=f"Task '{node.name}' has an empty type",
                    node_id=node.id,
                    metadata={"field": "task_type"}
                ))
            if node.retries is not None and not 0 <= node.retries <= MAX_RETRIES:
                errors.append(ValidationError(
                    code=ValidationErrorCode.INVALID_CONDITION,
                    message=f"Task '{node.name}' retries must be between 0 and {MAX_RETRIES}",
                    node_id=node.id,
                    metadata={"retries": node.retries}
                ))

        return errors
