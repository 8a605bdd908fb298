"""
工作流 DSL 解析器测试
"""
import pytest

from workflow_dsl.dsl import DslParser, parse_condition_expression
from workflow_dsl.exceptions import DSLSyntaxError, DSLResolutionError, WorkflowParseError
from workflow_dsl.models import (
    NodeType, DependencyType, ConditionOperator, ResourceType, TaskNode,
    DecisionNode, SyncPointNode
)


class TestDslParser:
    """DSL 解析器测试类"""

    def test_parse_simple_workflow(self, parser, simple_dsl):
        """测试解析最小工作流"""
        workflow = parser.parse(simple_dsl)

        assert workflow.name == "Simple"
        assert [node.type for node in workflow.nodes] == [
            NodeType.START, NodeType.TASK, NodeType.END
        ]
        assert len(workflow.dependencies) == 2
        assert workflow.id.startswith("workflow-")

        begin = workflow.get_node_by_name("Begin")
        work = workflow.get_node_by_name("Work")
        assert workflow.dependencies[0].source_id == begin.id
        assert workflow.dependencies[0].target_id == work.id
        assert workflow.dependencies[0].type == DependencyType.SEQUENTIAL

    def test_parse_full_pipeline(self, parser, pipeline_dsl):
        """测试解析完整工作流"""
        workflow = parser.parse(pipeline_dsl)

        assert workflow.description == "Process and analyze data from multiple sources"
        assert workflow.version == "1.0.0"
        assert len(workflow.tracks) == 1
        assert len(workflow.nodes) == 8

        load = workflow.get_node_by_name("Load CSV Data")
        assert isinstance(load, TaskNode)
        assert load.task_type == "data_loader"
        assert load.parameters == {
            "source_path": "/data/input/file.csv",
            "delimiter": ",",
            "options": {"header": True, "skip": 1},
            "columns": ["id", "score"],
        }
        assert load.timeout == 30000
        assert isinstance(load.timeout, int)
        assert load.retries == 2
        assert [(r.resource_type, r.amount) for r in load.resource_requirements] == [
            (ResourceType.CPU, 2), (ResourceType.MEMORY, 4096)
        ]

    def test_tracks_are_resolved(self, parser, pipeline_dsl):
        """测试轨道名称解析为ID，并登记到轨道成员"""
        workflow = parser.parse(pipeline_dsl)
        track = workflow.tracks[0]

        begin = workflow.get_node_by_name("Begin Pipeline")
        load = workflow.get_node_by_name("Load CSV Data")

        assert track.id.startswith("track-")
        assert begin.track_id == track.id
        assert load.track_id == track.id
        assert track.node_ids == [begin.id, load.id]
        assert workflow.get_nodes_in_track(track.id) == [begin, load]

    def test_decision_targets_are_resolved(self, parser, pipeline_dsl):
        """测试决策节点分支目标解析"""
        workflow = parser.parse(pipeline_dsl)

        decision = workflow.get_node_by_name("Quality Check")
        assert isinstance(decision, DecisionNode)
        assert len(decision.conditions) == 1

        condition = decision.conditions[0]
        assert condition.left_operand == "quality_score"
        assert condition.operator == ConditionOperator.GREATER_THAN
        assert condition.right_operand == 0.8
        assert condition.target_id == workflow.get_node_by_name("Analyze Data").id
        assert decision.default_target_id == workflow.get_node_by_name("Data Quality Error").id

    def test_conditional_and_default_dependencies(self, parser, pipeline_dsl):
        """测试 when / default 依赖"""
        workflow = parser.parse(pipeline_dsl)
        decision = workflow.get_node_by_name("Quality Check")

        outgoing = workflow.get_outgoing_dependencies(decision.id)
        when_dep, default_dep = outgoing

        assert when_dep.is_conditional()
        assert when_dep.condition.operator == ConditionOperator.GREATER_THAN
        assert default_dep.type == DependencyType.CONDITIONAL
        assert default_dep.condition is None
        assert default_dep.is_default()

    def test_sync_point_sources(self, parser, pipeline_dsl):
        """测试 sync 依赖登记为同步点的必需源节点"""
        workflow = parser.parse(pipeline_dsl)
        sync = workflow.get_node_by_name("Data Loaded")

        assert isinstance(sync, SyncPointNode)
        assert sync.config.wait_for_all is True
        assert sync.config.timeout == 300000
        assert sync.config.required_sources == [
            workflow.get_node_by_name("Load CSV Data").id,
            workflow.get_node_by_name("Load API Data").id,
        ]
        incoming = workflow.get_incoming_dependencies(sync.id)
        assert all(dep.type == DependencyType.SYNC for dep in incoming)

    def test_dependency_type_is_explicit(self, parser):
        """测试依赖类型只由后缀决定，不随目标节点类型改变"""
        workflow = parser.parse('''
workflow "W" {
  task "A" {}
  task "B" {}
  sync "Join" {}
  dependencies {
    "A" -> "Join"
    "B" -> "Join" sync
    "Join" -> "A" sync
  }
}
''')
        join = workflow.get_node_by_name("Join")
        plain, synced, to_task = workflow.dependencies

        assert plain.type == DependencyType.SEQUENTIAL
        assert synced.type == DependencyType.SYNC
        assert to_task.type == DependencyType.SYNC
        assert join.config.required_sources == [workflow.get_node_by_name("B").id]

    def test_repeated_track_property(self, parser):
        """测试重复的 track 属性以最后一个为准，节点只属于一个轨道"""
        workflow = parser.parse('''
workflow "W" {
  track "T1" {}
  track "T2" {}
  task "A" {
    track "T1"
    track "T2"
  }
}
''')
        node = workflow.get_node_by_name("A")
        first, second = workflow.tracks

        assert node.track_id == second.id
        assert first.node_ids == []
        assert second.node_ids == [node.id]

    def test_unique_ids(self, parser, pipeline_dsl):
        """测试每个节点、依赖都有唯一ID"""
        workflow = parser.parse(pipeline_dsl)

        node_ids = [node.id for node in workflow.nodes]
        dep_ids = [dep.id for dep in workflow.dependencies]
        assert len(set(node_ids)) == len(node_ids)
        assert len(set(dep_ids)) == len(dep_ids)
        assert all(node_id.startswith("node-") for node_id in node_ids)
        assert all(dep_id.startswith("dep-") for dep_id in dep_ids)

    def test_forward_references(self, parser):
        """测试引用后定义的节点"""
        workflow = parser.parse('''
workflow "Forward" {
  dependencies { "A" -> "B" }
  start "A" {}
  end "B" {}
}
''')
        assert workflow.dependencies[0].target_id == workflow.get_node_by_name("B").id

    def test_multiple_dependency_blocks(self, parser):
        """测试多个 dependencies 块拼接"""
        workflow = parser.parse('''
workflow "Blocks" {
  start "A" {}
  task "B" {}
  end "C" {}
  dependencies { "A" -> "B" }
  dependencies { "B" -> "C" }
}
''')
        assert len(workflow.dependencies) == 2

    def test_comments_everywhere(self, parser):
        """测试块内注释"""
        workflow = parser.parse('''
// header
workflow "Comments" {
  // inside workflow
  track "T" { /* inside track */ }
  task "A" {
    // inside node
    parameters {
      // inside object
      list: [ /* inside array */ 1, 2, ]
    }
    resources { /* r */ cpu: 1 }
  }
  dependencies {
    // inside dependencies
  }
}
// trailer
''')
        assert workflow.nodes[0].parameters == {"list": [1, 2]}

    def test_keyword_and_string_keys(self, parser):
        """测试关键字和字符串作为参数键"""
        workflow = parser.parse('''
workflow "Keys" {
  task "A" {
    parameters { type: "x", "with space": 1, timeout: 2.5 }
    resources { "gpu": 1, tpu: 4 }
  }
}
''')
        node = workflow.nodes[0]
        assert node.parameters == {"type": "x", "with space": 1, "timeout": 2.5}
        custom = node.resource_requirements[1]
        assert node.resource_requirements[0].resource_type == ResourceType.GPU
        assert custom.resource_type == ResourceType.CUSTOM
        assert custom.resource_id == "tpu"

    def test_empty_workflow(self, parser):
        """测试空工作流"""
        workflow = parser.parse('workflow "Empty" {}')

        assert workflow.nodes == []
        assert workflow.dependencies == []
        assert workflow.tracks == []

    def test_default_node_names_come_from_source(self, parser):
        """测试节点名称取自 DSL 而不是默认值"""
        workflow = parser.parse('workflow "W" { start "Go" {} end "Stop" {} }')

        assert [node.name for node in workflow.nodes] == ["Go", "Stop"]

    def test_parser_is_reusable(self, parser, simple_dsl, pipeline_dsl):
        """测试解析器实例可重复使用"""
        first = parser.parse(simple_dsl)
        second = parser.parse(pipeline_dsl)
        third = parser.parse(simple_dsl)

        assert len(first.nodes) == 3
        assert len(second.nodes) == 8
        assert first.nodes[0].id != third.nodes[0].id

    def test_parse_file(self, parser, example_file):
        """测试解析示例文件"""
        workflow = parser.parse_file(example_file)

        assert workflow.name == "Parallel Data Processing"
        assert len(workflow.tracks) == 3
        report = workflow.get_node_by_name("Generate Report")
        assert report.retries == 3
        assert report.parameters["include_charts"] is True


class TestDslParserErrors:
    """DSL 解析错误测试类"""

    @pytest.mark.parametrize("source, message", [
        ('task "A" {}', "Expected workflow keyword"),
        ('workflow W {}', "Expected string"),
        ('workflow "W" { bogus }', "Expected workflow element"),
        ('workflow "W" {', "Expected } after workflow definition"),
        ('workflow "W" {} extra', "Unexpected content after workflow definition"),
        ('workflow "W" { task "A" { retries 1.5 } }', "retries must be an integer"),
        ('workflow "W" { dependencies { "A" "B" } }', "Expected -> in dependency definition"),
        ('workflow "W" { task "A" { parameters { k: } } }', "Expected value"),
    ])
    def test_syntax_errors(self, parser, source, message):
        """测试语法错误"""
        with pytest.raises(DSLSyntaxError) as exc_info:
            parser.parse(source)

        assert message in str(exc_info.value)
        assert isinstance(exc_info.value, WorkflowParseError)

    @pytest.mark.parametrize("node, prop", [
        ('start "S"', 'type "x"'),
        ('end "E"', 'parameters {}'),
        ('task "T"', 'condition "a > 1" then "T"'),
        ('task "T"', 'default "T"'),
        ('decision "D"', 'wait_for_all true'),
        ('decision "D"', 'timeout 10'),
        ('sync "S"', 'retries 1'),
    ])
    def test_type_specific_properties(self, parser, node, prop):
        """测试类型专属属性出现在错误的节点上"""
        with pytest.raises(DSLSyntaxError, match="not valid for"):
            parser.parse(f'workflow "W" {{ {node} {{ {prop} }} }}')

    def test_error_location(self, parser):
        """测试错误位置"""
        source = 'workflow "W" {\n  task "A" {\n    wait_for_all true\n  }\n}'

        with pytest.raises(DSLSyntaxError) as exc_info:
            parser.parse(source)

        assert exc_info.value.line == 3
        assert exc_info.value.column == 5

    @pytest.mark.parametrize("condition", [
        "quality_score > ",
        "a > b c",
        "a >> 1",
    ])
    def test_invalid_condition(self, parser, condition):
        """测试非法条件表达式"""
        source = f'''
workflow "W" {{
  decision "D" {{ condition "{condition}" then "D" }}
}}
'''
        with pytest.raises(DSLSyntaxError):
            parser.parse(source)

    def test_unknown_dependency_node(self, parser):
        """测试依赖引用不存在的节点"""
        source = 'workflow "W" {\n  start "A" {}\n  dependencies {\n    "A" -> "Missing"\n  }\n}'

        with pytest.raises(DSLResolutionError) as exc_info:
            parser.parse(source)

        error = exc_info.value
        assert error.reference == "Missing"
        assert "'A' -> 'Missing'" in error.container
        assert error.line == 4

    def test_unknown_track(self, parser):
        """测试节点引用不存在的轨道"""
        with pytest.raises(DSLResolutionError, match="Unresolved reference 'Nope'"):
            parser.parse('workflow "W" { task "A" { track "Nope" } }')

    def test_unknown_decision_targets(self, parser):
        """测试决策目标不存在"""
        with pytest.raises(DSLResolutionError):
            parser.parse('workflow "W" { decision "D" { default "Nowhere" } }')
        with pytest.raises(DSLResolutionError):
            parser.parse('workflow "W" { decision "D" { condition "x == 1" then "Nowhere" } }')

    def test_duplicate_names_resolve_to_first(self, parser, caplog):
        """测试重名节点解析到第一个"""
        workflow = parser.parse('''
workflow "Dup" {
  start "A" {}
  task "A" {}
  end "B" {}
  dependencies { "A" -> "B" }
}
''')
        assert workflow.dependencies[0].source_id == workflow.nodes[0].id
        assert "Duplicate node name 'A'" in caplog.text

    def test_strict_mode_rejects_duplicates(self):
        """测试 strict 模式拒绝重名"""
        parser = DslParser(strict_names=True)

        with pytest.raises(DSLResolutionError, match="Duplicate node name"):
            parser.parse('workflow "Dup" { task "A" {} task "A" {} }')


class TestConditionExpression:
    """条件表达式解析测试类"""

    @pytest.mark.parametrize("text, operator", [
        ("a == 1", ConditionOperator.EQUALS),
        ("a = 1", ConditionOperator.EQUALS),
        ("a equals 1", ConditionOperator.EQUALS),
        ("a != 1", ConditionOperator.NOT_EQUALS),
        ("a >= 1", ConditionOperator.GREATER_THAN_OR_EQUALS),
        ("a less_than_or_equals 1", ConditionOperator.LESS_THAN_OR_EQUALS),
        ("a contains x", ConditionOperator.CONTAINS),
        ("a not_contains x", ConditionOperator.NOT_CONTAINS),
        ("a starts_with x", ConditionOperator.STARTS_WITH),
        ("a ends_with x", ConditionOperator.ENDS_WITH),
        ("a regex ^x$", ConditionOperator.REGEX),
    ])
    def test_operators(self, text, operator):
        """测试运算符的符号与单词写法"""
        assert parse_condition_expression(text).operator == operator

    @pytest.mark.parametrize("text, value", [
        ("a == true", True),
        ("a == false", False),
        ("a == 42", 42),
        ("a == 0.5", 0.5),
        ('a == "42"', "42"),
        ("a == ready", "ready"),
        ("a == -1", "-1"),
    ])
    def test_right_operand_types(self, text, value):
        """测试右操作数类型推断"""
        right = parse_condition_expression(text).right_operand

        assert right == value
        assert type(right) is type(value)

    def test_wrong_part_count(self):
        """测试段数不为三"""
        with pytest.raises(ValueError, match="Invalid condition format"):
            parse_condition_expression("a > 1 2")
