"""
工作流 DSL 生成器

将工作流对象序列化回 DSL 文本。跨对象引用（轨道、依赖端点、
决策分支目标）输出为名称，找不到时退回为ID本身。
"""
import logging
import math
import re
from decimal import Decimal
from typing import Any, Dict, List

from .grammar import NODE_TYPE_KEYWORDS, OPERATOR_SYMBOLS, IDENTIFIER_PATTERN
from .parser import sniff_value
from ..models.workflow import (
    Workflow, WorkflowNode, TaskNode, DecisionNode, SyncPointNode, Dependency,
    Condition, ConditionValue
)


logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(IDENTIFIER_PATTERN)

# 生成时需要编码的字符
_ENCODE = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def quote(text: str) -> str:
    """输出带转义的 DSL 字符串字面量"""
    return '"' + "".join(_ENCODE.get(char, char) for char in text) + '"'


def format_number(value) -> str:
    """数字只输出定点写法，词法分析不接受指数形式"""
    if isinstance(value, float):
        if not math.isfinite(value):
            return repr(value)
        text = format(Decimal(repr(value)), "f")
        return text if "." in text else text + ".0"
    return str(value)


def format_key(key: str) -> str:
    if _IDENTIFIER_RE.match(key):
        return key
    return quote(key)


def format_value(value: Any) -> str:
    """参数值的 DSL 写法"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = ", ".join(f"{format_key(str(k))}: {format_value(v)}" for k, v in value.items())
        return "{ " + entries + " }"
    return quote(str(value))


def format_operand(value: ConditionValue) -> str:
    """条件右操作数：字符串若会被推断为其他类型则加引号"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    text = str(value)
    if not text or not isinstance(sniff_value(text), str) or text.startswith('"'):
        return f'"{text}"'
    return text


def format_condition(condition: Condition) -> str:
    """条件表达式字符串（不含外层引号）"""
    operator = OPERATOR_SYMBOLS[condition.operator]
    return f"{condition.left_operand} {operator} {format_operand(condition.right_operand)}"


class DslGenerator:
    """工作流 DSL 生成器"""

    def __init__(self, indent: str = "  "):
        self.indent = indent

    def generate(self, workflow: Workflow) -> str:
        """
        生成 DSL 文本

        对同名节点唯一的工作流，parse(generate(w)) 与 w 同构。

        Args:
            workflow: 工作流对象

        Returns:
            str: DSL 文本
        """
        node_names = {node.id: node.name for node in workflow.nodes}
        track_names = {track.id: track.name for track in workflow.tracks}

        lines = [f"workflow {quote(workflow.name)} {{"]
        if workflow.description is not None:
            lines.append(f"{self.indent}description {quote(workflow.description)}")
        if workflow.version is not None:
            lines.append(f"{self.indent}version {quote(workflow.version)}")
        lines.append("")

        for track in workflow.tracks:
            lines.append(f"{self.indent}track {quote(track.name)} {{")
            if track.description is not None:
                lines.append(f"{self.indent * 2}description {quote(track.description)}")
            lines.append(f"{self.indent}}}")
            lines.append("")

        for node in workflow.nodes:
            lines.extend(self._node_lines(node, node_names, track_names))
            lines.append("")

        if workflow.dependencies:
            lines.append(f"{self.indent}dependencies {{")
            for dependency in workflow.dependencies:
                lines.append(self.indent * 2 + self._dependency_line(dependency, node_names))
            lines.append(f"{self.indent}}}")

        while lines and lines[-1] == "":
            lines.pop()
        lines.append("}")

        logger.debug(f"Generated DSL for workflow '{workflow.name}' ({len(lines)} lines)")
        return "\n".join(lines) + "\n"

    def _node_lines(
        self,
        node: WorkflowNode,
        node_names: Dict[str, str],
        track_names: Dict[str, str]
    ) -> List[str]:
        keyword = NODE_TYPE_KEYWORDS[node.type]
        inner = self.indent * 2
        body: List[str] = []

        if node.description is not None:
            body.append(f"{inner}description {quote(node.description)}")
        if node.track_id is not None:
            body.append(f"{inner}track {quote(track_names.get(node.track_id, node.track_id))}")

        if isinstance(node, TaskNode):
            body.append(f"{inner}type {quote(node.task_type)}")
            if node.parameters is not None:
                body.extend(self._parameter_lines(node.parameters))
            if node.timeout is not None:
                body.append(f"{inner}timeout {format_number(node.timeout)}")
            if node.retries is not None:
                body.append(f"{inner}retries {node.retries}")
        elif isinstance(node, DecisionNode):
            for condition in node.conditions:
                target = node_names.get(condition.target_id, condition.target_id or "")
                body.append(
                    f"{inner}condition {quote(format_condition(condition))} then {quote(target)}"
                )
            if node.default_target_id is not None:
                target = node_names.get(node.default_target_id, node.default_target_id)
                body.append(f"{inner}default {quote(target)}")
        elif isinstance(node, SyncPointNode):
            body.append(f"{inner}wait_for_all {'true' if node.config.wait_for_all else 'false'}")
            if node.config.timeout is not None:
                body.append(f"{inner}timeout {format_number(node.config.timeout)}")

        if node.resource_requirements:
            entries = ", ".join(
                f"{format_key(r.key)}: {format_number(r.amount)}"
                for r in node.resource_requirements
            )
            body.append(f"{inner}resources {{ {entries} }}")

        header = f"{self.indent}{keyword} {quote(node.name)}"
        if not body:
            return [header + " {}"]
        return [header + " {"] + body + [f"{self.indent}}}"]

    def _parameter_lines(self, parameters: Dict[str, Any]) -> List[str]:
        inner = self.indent * 2
        if not parameters:
            return [f"{inner}parameters {{}}"]
        lines = [f"{inner}parameters {{"]
        for key, value in parameters.items():
            lines.append(f"{self.indent * 3}{format_key(str(key))}: {format_value(value)}")
        lines.append(f"{inner}}}")
        return lines

    def _dependency_line(self, dependency: Dependency, node_names: Dict[str, str]) -> str:
        source = node_names.get(dependency.source_id, dependency.source_id)
        target = node_names.get(dependency.target_id, dependency.target_id)
        line = f"{quote(source)} -> {quote(target)}"
        if dependency.is_conditional():
            line += f" when {quote(format_condition(dependency.condition))}"
        elif dependency.is_default():
            line += " default"
        elif dependency.is_synchronization():
            line += " sync"
        return line


def generate(workflow: Workflow) -> str:
    """生成 DSL 文本"""
    return DslGenerator().generate(workflow)
