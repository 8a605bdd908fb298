"""
工作流结构验证测试
"""
import pytest

from workflow_dsl.models import (
    Workflow, StartNode, EndNode, TaskNode, DecisionNode, SyncPointNode,
    SyncPointConfig, Dependency, DependencyType, Condition, ConditionOperator,
    ResourceRequirement, ResourceType, Track, ValidationErrorCode
)
from workflow_dsl.validation import (
    ValidationService, WorkflowValidator, CircularDependencyValidator,
    OrphanedNodeValidator, StructureValidator, ReferenceIntegrityValidator,
    NodeConfigurationValidator
)


def chain(*nodes, dependency_type=DependencyType.SEQUENTIAL):
    """依次连接节点"""
    return [
        Dependency(source_id=a.id, target_id=b.id, type=dependency_type)
        for a, b in zip(nodes, nodes[1:])
    ]


def codes(errors):
    return [error.code for error in errors]


class TestCircularDependencyValidator:
    """循环依赖检测测试类"""

    @pytest.fixture
    def validator(self):
        return CircularDependencyValidator()

    def test_three_node_cycle(self, validator):
        """测试 A->B->C->A 报告一个环"""
        a, b, c = TaskNode(name="A"), TaskNode(name="B"), TaskNode(name="C")
        dependencies = chain(a, b, c, a)
        workflow = Workflow(nodes=[a, b, c], dependencies=dependencies)

        errors = validator.validate(workflow)

        assert codes(errors) == [ValidationErrorCode.CIRCULAR_DEPENDENCY]
        error = errors[0]
        assert error.metadata["cycle"] == [a.id, b.id, c.id]
        assert error.dependency_ids == [dep.id for dep in dependencies]
        assert error.metadata["edges"] == [
            f"{a.id}->{b.id}", f"{b.id}->{c.id}", f"{c.id}->{a.id}"
        ]
        assert "A -> B -> C -> A" in error.message

    def test_cycle_is_rotation_invariant(self, validator):
        """测试从环中任意节点开始遍历得到同一个环"""
        a, b, c = TaskNode(name="A"), TaskNode(name="B"), TaskNode(name="C")
        workflow = Workflow(nodes=[b, c, a], dependencies=chain(a, b, c, a))

        cycle = validator.validate(workflow)[0].metadata["cycle"]
        start = cycle.index(a.id)

        assert cycle[start:] + cycle[:start] == [a.id, b.id, c.id]

    def test_acyclic(self, validator):
        """测试无环图（含菱形）"""
        a, b, c, d = (TaskNode(name=n) for n in "ABCD")
        workflow = Workflow(
            nodes=[a, b, c, d],
            dependencies=chain(a, b, d) + chain(a, c, d)
        )

        assert validator.validate(workflow) == []

    def test_self_loop(self, validator):
        """测试自环"""
        a = TaskNode(name="A")
        workflow = Workflow(nodes=[a], dependencies=[Dependency(source_id=a.id, target_id=a.id)])

        errors = validator.validate(workflow)

        assert len(errors) == 1
        assert errors[0].metadata["cycle"] == [a.id]

    def test_conditional_edges_count(self, validator):
        """测试条件依赖也参与成环"""
        a, b = TaskNode(name="A"), TaskNode(name="B")
        workflow = Workflow(
            nodes=[a, b],
            dependencies=chain(a, b, a, dependency_type=DependencyType.CONDITIONAL)
        )

        assert len(validator.validate(workflow)) == 1

    def test_two_independent_cycles(self, validator):
        """测试两个互不相连的环"""
        a, b, c, d = (TaskNode(name=n) for n in "ABCD")
        workflow = Workflow(nodes=[a, b, c, d], dependencies=chain(a, b, a) + chain(c, d, c))

        errors = validator.validate(workflow)

        assert [e.metadata["cycle"] for e in errors] == [[a.id, b.id], [c.id, d.id]]

    def test_unknown_endpoints_are_ignored(self, validator):
        """测试引用不存在节点的依赖不影响环检测"""
        a = TaskNode(name="A")
        workflow = Workflow(
            nodes=[a],
            dependencies=[Dependency(source_id=a.id, target_id="node-ghost")]
        )

        assert validator.validate(workflow) == []

    def test_long_chain_does_not_recurse(self, validator):
        """测试长链不会触发递归深度限制"""
        nodes = [TaskNode(name=f"N{i}") for i in range(5000)]
        workflow = Workflow(nodes=nodes, dependencies=chain(*nodes))

        assert validator.validate(workflow) == []


class TestOrphanedNodeValidator:
    """孤立节点检测测试类"""

    def test_orphan_task(self):
        """测试孤立任务节点"""
        start, end, lonely = StartNode(), EndNode(), TaskNode(name="Lonely")
        workflow = Workflow(nodes=[start, lonely, end], dependencies=chain(start, end))

        errors = OrphanedNodeValidator().validate(workflow)

        assert codes(errors) == [ValidationErrorCode.ORPHANED_NODE]
        assert errors[0].node_id == lonely.id

    def test_start_and_end_exempt(self):
        """测试开始/结束节点不算孤立"""
        workflow = Workflow(nodes=[StartNode(), EndNode()])

        assert OrphanedNodeValidator().validate(workflow) == []

    def test_incoming_only_is_not_orphan(self):
        """测试只有入边的节点不算孤立"""
        start, sink = StartNode(), TaskNode(name="Sink")
        workflow = Workflow(nodes=[start, sink], dependencies=chain(start, sink))

        assert OrphanedNodeValidator().validate(workflow) == []


class TestStructureValidator:
    """结构验证测试类"""

    def test_missing_start_and_end(self):
        """测试缺少开始和结束节点"""
        workflow = Workflow(nodes=[TaskNode(name="A")])

        assert codes(StructureValidator().validate(workflow)) == [
            ValidationErrorCode.MISSING_START_NODE, ValidationErrorCode.MISSING_END_NODE
        ]

    def test_start_end_path_is_valid(self, validation_service):
        """测试开始->结束的工作流通过全部验证"""
        start, end = StartNode(), EndNode()
        workflow = Workflow(nodes=[start, end], dependencies=chain(start, end))

        result = validation_service.validate_workflow(workflow)

        assert result.valid
        assert result.errors == []


class TestReferenceIntegrityValidator:
    """引用完整性测试类"""

    @pytest.fixture
    def validator(self):
        return ReferenceIntegrityValidator()

    def test_duplicate_ids(self, validator):
        """测试重复的节点/轨道ID"""
        a = TaskNode(name="A")
        twin = TaskNode(id=a.id, name="Twin")
        track = Track(name="T")
        workflow = Workflow(nodes=[a, twin], tracks=[track, Track(id=track.id, name="T2")])

        assert codes(validator.validate(workflow)) == [
            ValidationErrorCode.DUPLICATE_NODE_ID, ValidationErrorCode.DUPLICATE_TRACK_ID
        ]

    def test_unknown_dependency_endpoint(self, validator):
        """测试依赖引用不存在的节点"""
        a = TaskNode(name="A")
        dependency = Dependency(source_id=a.id, target_id="node-ghost")
        workflow = Workflow(nodes=[a], dependencies=[dependency])

        errors = validator.validate(workflow)

        assert codes(errors) == [ValidationErrorCode.INVALID_DEPENDENCY]
        assert errors[0].dependency_ids == [dependency.id]

    def test_track_references(self, validator):
        """测试轨道引用"""
        track = Track(name="T", node_ids=["node-ghost"])
        a = TaskNode(name="A", track_id="track-ghost")
        workflow = Workflow(nodes=[a], tracks=[track])

        errors = validator.validate(workflow)

        assert codes(errors) == [
            ValidationErrorCode.INVALID_TRACK_REFERENCE,
            ValidationErrorCode.INVALID_TRACK_REFERENCE
        ]

    def test_decision_targets(self, validator):
        """测试决策分支引用"""
        lonely = DecisionNode(name="Lonely")
        broken = DecisionNode(
            name="Broken",
            conditions=[Condition("x", ConditionOperator.EQUALS, 1, target_id="node-ghost")],
            default_target_id="node-ghost"
        )
        workflow = Workflow(nodes=[lonely, broken])

        errors = validator.validate(workflow)

        assert codes(errors) == [ValidationErrorCode.INVALID_CONDITION] * 3
        assert errors[0].node_id == lonely.id

    def test_decision_with_outgoing_dependencies_has_branches(self, validator):
        """测试只用依赖表达分支的决策节点"""
        decision, target = DecisionNode(name="D"), TaskNode(name="T")
        workflow = Workflow(nodes=[decision, target], dependencies=chain(decision, target))

        assert validator.validate(workflow) == []

    def test_sync_sources(self, validator):
        """测试同步点源节点引用"""
        sync = SyncPointNode(name="S", config=SyncPointConfig(required_sources=["node-ghost"]))

        errors = validator.validate(Workflow(nodes=[sync]))

        assert codes(errors) == [ValidationErrorCode.INVALID_SYNC_POINT]

    def test_sync_sources_match_sync_dependencies(self, validator):
        """测试必需源节点与 sync 依赖不一致"""
        a, b = TaskNode(name="A"), TaskNode(name="B")
        sync = SyncPointNode(name="S", config=SyncPointConfig(required_sources=[a.id]))
        workflow = Workflow(nodes=[a, b, sync], dependencies=[
            Dependency(source_id=a.id, target_id=sync.id),
            Dependency(source_id=b.id, target_id=sync.id, type=DependencyType.SYNC),
        ])

        errors = validator.validate(workflow)

        assert codes(errors) == [ValidationErrorCode.INVALID_SYNC_POINT] * 2
        assert [e.metadata["source_id"] for e in errors] == [a.id, b.id]

    def test_consistent_sync_point(self, validator):
        a = TaskNode(name="A")
        sync = SyncPointNode(name="S", config=SyncPointConfig(required_sources=[a.id]))
        workflow = Workflow(nodes=[a, sync], dependencies=chain(a, sync, dependency_type=DependencyType.SYNC))

        assert validator.validate(workflow) == []

    def test_sync_dependency_to_task(self, validator):
        """测试 sync 依赖指向非同步点节点"""
        a, b = TaskNode(name="A"), TaskNode(name="B")
        workflow = Workflow(nodes=[a, b], dependencies=chain(a, b, dependency_type=DependencyType.SYNC))

        assert codes(validator.validate(workflow)) == [ValidationErrorCode.INVALID_DEPENDENCY]


class TestNodeConfigurationValidator:
    """节点配置测试类"""

    def test_valid_task(self):
        task = TaskNode(name="A", retries=5, resource_requirements=[
            ResourceRequirement(ResourceType.CPU, 0)
        ])

        assert NodeConfigurationValidator().validate(Workflow(nodes=[task])) == []

    def test_invalid_configuration(self):
        """测试各类配置错误"""
        task = TaskNode(name="", task_type="", retries=6, resource_requirements=[
            ResourceRequirement(ResourceType.MEMORY, -1),
            ResourceRequirement(ResourceType.CUSTOM, 1),
        ])

        errors = NodeConfigurationValidator().validate(Workflow(nodes=[task]))

        assert codes(errors) == [
            ValidationErrorCode.MISSING_REQUIRED_FIELD,
            ValidationErrorCode.INVALID_RESOURCE_REQUIREMENT,
            ValidationErrorCode.INVALID_RESOURCE_REQUIREMENT,
            ValidationErrorCode.MISSING_REQUIRED_FIELD,
            ValidationErrorCode.INVALID_CONDITION,
        ]

    def test_set_amount_rejects_negative(self):
        """测试资源数量不能设为负数"""
        requirement = ResourceRequirement(ResourceType.CPU, 1)

        with pytest.raises(ValueError):
            requirement.set_amount(-2)
        assert requirement.amount == 1


class TestValidationService:
    """验证服务测试类"""

    def test_parsed_pipeline_is_valid(self, parser, pipeline_dsl, validation_service):
        """测试解析出的工作流通过默认验证"""
        result = validation_service.validate_workflow(parser.parse(pipeline_dsl))

        assert result.valid, [error.message for error in result.errors]

    def test_validator_order_and_registration(self):
        """测试注册顺序即报告顺序"""
        service = ValidationService()
        service.register_validator(StructureValidator())
        service.register_validator(OrphanedNodeValidator())

        result = service.validate_workflow(Workflow(nodes=[TaskNode(name="A")]))

        assert not result.valid
        assert codes(result.errors) == [
            ValidationErrorCode.MISSING_START_NODE,
            ValidationErrorCode.MISSING_END_NODE,
            ValidationErrorCode.ORPHANED_NODE,
        ]

    def test_failing_validator_is_reported(self, caplog):
        """测试验证器异常转为 validator_failure"""
        class BrokenValidator(WorkflowValidator):
            def validate(self, workflow):
                raise RuntimeError("boom")

        service = ValidationService([BrokenValidator(), StructureValidator()])
        result = service.validate_workflow(Workflow(nodes=[StartNode(), EndNode()]))

        assert codes(result.errors) == [ValidationErrorCode.VALIDATOR_FAILURE]
        assert result.errors[0].metadata["validator"] == "BrokenValidator"
        assert "boom" in caplog.text

    def test_validation_does_not_mutate(self, parser, pipeline_dsl, validation_service):
        """测试验证不修改工作流"""
        workflow = parser.parse(pipeline_dsl)
        before = workflow.to_dict()

        validation_service.validate_workflow(workflow)

        assert workflow.to_dict() == before

    def test_result_to_dict(self, validation_service):
        """测试结果序列化"""
        result = validation_service.validate_workflow(Workflow())

        data = result.to_dict()
        assert data["valid"] is False
        assert {e["code"] for e in data["errors"]} == {"missing_start_node", "missing_end_node"}
