"""
工作流 DSL 引擎使用示例
"""
import asyncio
from pathlib import Path
import logging

from workflow_dsl import DslParser, DslGenerator, create_default_validation_service
from workflow_dsl.exceptions import WorkflowParseError
from workflow_dsl.models import Dependency, TaskNode
from workflow_dsl.serialization import SerializationService
from workflow_dsl.services import WorkflowService
from workflow_dsl.storage import InMemoryWorkflowRepository


# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

EXAMPLES_DIR = Path(__file__).parent


def example_parse_and_validate():
    """示例1: 解析 DSL 并验证结构"""
    print("\n=== 示例1: 解析与验证 ===")

    parser = DslParser()
    workflow = parser.parse_file(EXAMPLES_DIR / "parallel_processing.wf")
    print(f"工作流: {workflow.name} ({len(workflow.nodes)} 个节点, {len(workflow.tracks)} 个轨道)")

    for track in workflow.tracks:
        members = [node.name for node in workflow.get_nodes_in_track(track.id)]
        print(f"  轨道 {track.name}: {', '.join(members)}")

    result = create_default_validation_service().validate_workflow(workflow)
    print(f"验证结果: {'通过' if result.valid else '失败'}")


def example_detect_cycle():
    """示例2: 循环依赖检测"""
    print("\n=== 示例2: 循环依赖 ===")

    workflow = DslParser().parse_file(EXAMPLES_DIR / "data_pipeline.wf")

    # 人为加一条回边
    analyze = workflow.get_node_by_name("Analyze Data")
    load = workflow.get_node_by_name("Load CSV Data")
    workflow.add_dependency(Dependency(source_id=analyze.id, target_id=load.id))

    result = create_default_validation_service().validate_workflow(workflow)
    for error in result.errors:
        print(f"  [{error.code.value}] {error.message}")


def example_generate():
    """示例3: 编程方式修改后重新生成 DSL"""
    print("\n=== 示例3: 生成 DSL ===")

    workflow = DslParser().parse_file(EXAMPLES_DIR / "data_pipeline.wf")
    archive = workflow.add_node(TaskNode(name="Archive Results", task_type="archiver", retries=2))
    end = workflow.get_end_nodes()[0]
    workflow.add_dependency(Dependency(source_id=archive.id, target_id=end.id))

    print(DslGenerator().generate(workflow))


def example_syntax_error():
    """示例4: 语法错误定位"""
    print("\n=== 示例4: 错误定位 ===")

    try:
        DslParser().parse('workflow "Broken" {\n  task "A" { wait_for_all true }\n}')
    except WorkflowParseError as e:
        print(f"解析失败: {e}")


async def example_service():
    """示例5: 存储与格式转换"""
    print("\n=== 示例5: 工作流管理服务 ===")

    service = WorkflowService(InMemoryWorkflowRepository(), SerializationService())
    source = (EXAMPLES_DIR / "data_pipeline.wf").read_text(encoding="utf-8")

    workflow = await service.create_workflow(source)
    clone = await service.clone_workflow(workflow.id, name="Pipeline v2")
    print(f"已存储: {[w.name for w in await service.list_workflows()]}")

    print(await service.export_workflow(clone.id, "yaml"))


def main():
    example_parse_and_validate()
    example_detect_cycle()
    example_generate()
    example_syntax_error()
    asyncio.run(example_service())


if __name__ == "__main__":
    main()
