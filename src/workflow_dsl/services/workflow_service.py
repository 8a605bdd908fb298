"""
工作流管理服务

在仓库之上提供按工作流ID的增删改查、克隆、校验、导出，
以及节点/依赖/轨道的编辑操作。
"""
import logging
from typing import Any, Dict, List, Optional

from ..exceptions import WorkflowNotFoundError, WorkflowValidationError
from ..models.workflow import (
    Workflow, WorkflowNode, Dependency, Track, Condition, DependencyType, generate_id
)
from ..models.validation import ValidationResult
from ..serialization import SerializationService
from ..storage.repository import WorkflowRepository
from ..validation import ValidationService, create_default_validation_service


logger = logging.getLogger(__name__)


class WorkflowService:
    """工作流管理服务"""

    def __init__(
        self,
        repository: WorkflowRepository,
        serialization: Optional[SerializationService] = None,
        validation: Optional[ValidationService] = None
    ):
        self.repository = repository
        self.serialization = serialization or SerializationService()
        self.validation = validation or create_default_validation_service()

    async def create_workflow(
        self,
        source: str,
        fmt: str = "dsl",
        require_valid: bool = False
    ) -> Workflow:
        """
        从文本创建并保存工作流

        Raises:
            WorkflowValidationError: require_valid 为真且结构验证未通过
        """
        workflow = self.serialization.deserialize(source, fmt)
        if require_valid:
            result = self.validation.validate_workflow(workflow)
            if not result.valid:
                raise WorkflowValidationError(
                    f"Workflow validation failed with {len(result.errors)} error(s)", result
                )
        await self.repository.save(workflow)
        logger.info(f"Created workflow: {workflow.id} ({workflow.name})")
        return workflow

    async def save_workflow(self, workflow: Workflow) -> Workflow:
        await self.repository.save(workflow)
        return workflow

    async def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = await self.repository.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    async def list_workflows(
        self,
        offset: int = 0,
        limit: int = 100,
        name: Optional[str] = None
    ) -> List[Workflow]:
        filters: Dict[str, Any] = {}
        if name:
            filters["name"] = name
        return await self.repository.list(offset=offset, limit=limit, filters=filters)

    async def delete_workflow(self, workflow_id: str):
        if not await self.repository.delete(workflow_id):
            raise WorkflowNotFoundError(workflow_id)
        logger.info(f"Deleted workflow: {workflow_id}")

    async def clone_workflow(self, workflow_id: str, name: Optional[str] = None) -> Workflow:
        """克隆工作流（新的工作流ID，节点ID保持不变）"""
        source = await self.get_workflow(workflow_id)
        clone = source.clone()
        clone.id = generate_id("workflow")
        clone.name = name or f"{source.name} (Copy)"
        await self.repository.save(clone)
        logger.info(f"Cloned workflow {workflow_id} -> {clone.id}")
        return clone

    async def validate_workflow(self, workflow_id: str) -> ValidationResult:
        return self.validation.validate_workflow(await self.get_workflow(workflow_id))

    async def export_workflow(self, workflow_id: str, fmt: str = "dsl") -> str:
        return self.serialization.serialize(await self.get_workflow(workflow_id), fmt)

    async def add_node(self, workflow_id: str, node: WorkflowNode) -> WorkflowNode:
        workflow = await self.get_workflow(workflow_id)
        if workflow.get_node(node.id) is not None:
            raise ValueError(f"Node '{node.id}' already exists")
        workflow.add_node(node)
        await self.repository.update(workflow)
        return node

    async def remove_node(self, workflow_id: str, node_id: str) -> bool:
        """删除节点，同时删除相关依赖并移出轨道"""
        workflow = await self.get_workflow(workflow_id)
        removed = workflow.remove_node(node_id)
        if removed:
            await self.repository.update(workflow)
        return removed

    async def add_dependency(
        self,
        workflow_id: str,
        source_id: str,
        target_id: str,
        dependency_type: DependencyType = DependencyType.SEQUENTIAL,
        condition: Optional[Condition] = None
    ) -> Dependency:
        workflow = await self.get_workflow(workflow_id)
        for node_id in (source_id, target_id):
            if workflow.get_node(node_id) is None:
                raise ValueError(f"Node '{node_id}' not found in workflow '{workflow_id}'")

        dependency = Dependency(source_id=source_id, target_id=target_id, type=dependency_type)
        if condition is not None:
            dependency.set_condition(condition)

        workflow.add_dependency(dependency)
        await self.repository.update(workflow)
        return dependency

    async def remove_dependency(self, workflow_id: str, source_id: str, target_id: str) -> bool:
        workflow = await self.get_workflow(workflow_id)
        removed = workflow.remove_dependency(source_id, target_id)
        if removed:
            await self.repository.update(workflow)
        return removed

    async def add_track(
        self,
        workflow_id: str,
        name: str,
        description: Optional[str] = None
    ) -> Track:
        workflow = await self.get_workflow(workflow_id)
        track = workflow.add_track(Track(name=name, description=description))
        await self.repository.update(workflow)
        return track

    async def remove_track(self, workflow_id: str, track_id: str) -> bool:
        workflow = await self.get_workflow(workflow_id)
        removed = workflow.remove_track(track_id)
        if removed:
            await self.repository.update(workflow)
        return removed

    async def assign_node_to_track(self, workflow_id: str, node_id: str, track_id: str):
        """节点改挂到另一个轨道"""
        workflow = await self.get_workflow(workflow_id)
        node = workflow.get_node(node_id)
        track = workflow.get_track(track_id)
        if node is None:
            raise ValueError(f"Node '{node_id}' not found in workflow '{workflow_id}'")
        if track is None:
            raise ValueError(f"Track '{track_id}' not found in workflow '{workflow_id}'")

        if node.track_id is not None:
            previous = workflow.get_track(node.track_id)
            if previous is not None:
                previous.remove_node(node_id)

        node.assign_to_track(track_id)
        track.add_node(node_id)
        await self.repository.update(workflow)
