"""
Pytest 配置和公共 fixtures
"""
from pathlib import Path

import pytest

from workflow_dsl.dsl import DslParser, DslGenerator
from workflow_dsl.serialization import SerializationService
from workflow_dsl.services import WorkflowService
from workflow_dsl.storage import InMemoryWorkflowRepository
from workflow_dsl.validation import create_default_validation_service


EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


@pytest.fixture
def parser():
    """创建解析器实例"""
    return DslParser()


@pytest.fixture
def generator():
    """创建生成器实例"""
    return DslGenerator()


@pytest.fixture
def validation_service():
    """创建注册了内置验证器的验证服务"""
    return create_default_validation_service()


@pytest.fixture
def serialization_service():
    """创建序列化服务"""
    return SerializationService()


@pytest.fixture
def workflow_repository():
    """创建内存工作流仓库"""
    return InMemoryWorkflowRepository()


@pytest.fixture
def workflow_service(workflow_repository, serialization_service, validation_service):
    """创建工作流管理服务"""
    return WorkflowService(workflow_repository, serialization_service, validation_service)


@pytest.fixture
def simple_dsl():
    """最小的合法工作流"""
    return '''
workflow "Simple" {
  start "Begin" {}
  task "Work" {
    type "worker"
  }
  end "Done" {}

  dependencies {
    "Begin" -> "Work"
    "Work" -> "Done"
  }
}
'''


@pytest.fixture
def pipeline_dsl():
    """包含轨道、决策、同步点的完整工作流"""
    return '''
workflow "Data Processing Pipeline" {
  description "Process and analyze data from multiple sources"
  version "1.0.0"

  track "Data Ingestion" {
    description "Ingest data from various sources"
  }

  start "Begin Pipeline" {
    track "Data Ingestion"
  }

  task "Load CSV Data" {
    track "Data Ingestion"
    type "data_loader"
    parameters {
      source_path: "/data/input/file.csv"
      delimiter: ","
      options: { header: true, skip: 1 }
      columns: ["id", "score"]
    }
    resources {cpu: 2, memory: 4096}
    timeout 30000
    retries 2
  }

  task "Load API Data" {
    type "http_loader"
  }

  sync "Data Loaded" {
    wait_for_all true
    timeout 300000
  }

  decision "Quality Check" {
    condition "quality_score > 0.8" then "Analyze Data"
    default "Data Quality Error"
  }

  task "Analyze Data" {
    type "analyzer"
  }

  task "Data Quality Error" {
    type "notifier"
  }

  end "Complete Pipeline" {}

  dependencies {
    "Begin Pipeline" -> "Load CSV Data"
    "Begin Pipeline" -> "Load API Data"
    "Load CSV Data" -> "Data Loaded" sync
    "Load API Data" -> "Data Loaded" sync
    "Data Loaded" -> "Quality Check"
    "Quality Check" -> "Analyze Data" when "quality_score > 0.8"
    "Quality Check" -> "Data Quality Error" default
    "Analyze Data" -> "Complete Pipeline"
    "Data Quality Error" -> "Complete Pipeline"
  }
}
'''


@pytest.fixture
def example_file():
    """示例 DSL 文件路径"""
    return EXAMPLES_DIR / "parallel_processing.wf"
