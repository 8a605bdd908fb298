"""
存储仓库接口定义
"""
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
import threading

from ..models.workflow import Workflow


class WorkflowRepository(ABC):
    """工作流存储仓库接口"""

    @abstractmethod
    async def save(self, workflow: Workflow) -> str:
        """保存工作流"""
        pass

    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[Workflow]:
        """获取工作流"""
        pass

    @abstractmethod
    async def get_by_name(self, name: str, version: str = None) -> Optional[Workflow]:
        """根据名称和版本获取工作流"""
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 100,
        filters: Dict[str, Any] = None
    ) -> List[Workflow]:
        """列出工作流"""
        pass

    @abstractmethod
    async def update(self, workflow: Workflow) -> bool:
        """更新工作流"""
        pass

    @abstractmethod
    async def delete(self, workflow_id: str) -> bool:
        """删除工作流"""
        pass

    @abstractmethod
    async def count(self) -> int:
        """工作流数量"""
        pass


class InMemoryWorkflowRepository(WorkflowRepository):
    """内存工作流仓库实现

    存取时做深拷贝，调用方拿到的对象与仓库内部状态互不影响。
    """

    def __init__(self):
        self.workflows: Dict[str, Workflow] = {}
        self._lock = threading.RLock()

    async def save(self, workflow: Workflow) -> str:
        with self._lock:
            self.workflows[workflow.id] = workflow.clone()
        return workflow.id

    async def get(self, workflow_id: str) -> Optional[Workflow]:
        with self._lock:
            workflow = self.workflows.get(workflow_id)
            return workflow.clone() if workflow else None

    async def get_by_name(self, name: str, version: str = None) -> Optional[Workflow]:
        with self._lock:
            for workflow in self.workflows.values():
                if workflow.name == name:
                    if version is None or workflow.version == version:
                        return workflow.clone()
        return None

    async def list(
        self,
        offset: int = 0,
        limit: int = 100,
        filters: Dict[str, Any] = None
    ) -> List[Workflow]:
        with self._lock:
            workflows = list(self.workflows.values())

        if filters:
            if filters.get("name"):
                workflows = [w for w in workflows if filters["name"].lower() in w.name.lower()]
            if filters.get("version"):
                workflows = [w for w in workflows if w.version == filters["version"]]

        return [w.clone() for w in workflows[offset:offset + limit]]

    async def update(self, workflow: Workflow) -> bool:
        with self._lock:
            if workflow.id in self.workflows:
                self.workflows[workflow.id] = workflow.clone()
                return True
        return False

    async def delete(self, workflow_id: str) -> bool:
        with self._lock:
            if workflow_id in self.workflows:
                del self.workflows[workflow_id]
                return True
        return False

    async def count(self) -> int:
        with self._lock:
            return len(self.workflows)
