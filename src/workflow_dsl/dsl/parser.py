"""
工作流 DSL 解析器

递归下降解析，每个语法结构对应一个产生式方法。
解析得到的名称引用在最后交给 NameResolver 绑定为ID。
"""
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Union

from .grammar import (
    Token, TokenType, KEYWORDS, NODE_KEYWORDS, NODE_TYPE_KEYWORDS, OPERATORS,
    NUMBER_PATTERN
)
from .lexer import Lexer
from .resolver import (
    NameResolver, PendingReferences, NodeTrackReference, DependencyReference,
    ConditionTargetReference, DefaultTargetReference
)
from ..exceptions import DSLSyntaxError
from ..models.workflow import (
    Workflow, WorkflowNode, TaskNode, DecisionNode, SyncPointNode, Track,
    Dependency, DependencyType, Condition, ConditionValue, ResourceRequirement,
    ResourceType, NodeType, create_node
)


logger = logging.getLogger(__name__)

# 可以作为对象键的关键字
KEYWORD_TYPES = set(KEYWORDS.values())

_NUMBER_RE = re.compile(NUMBER_PATTERN)


def to_number(text: str) -> Union[int, float]:
    """数字字面量转换：不带小数点为 int，否则为 float"""
    if "." in text:
        return float(text)
    return int(text)


def sniff_value(text: str) -> ConditionValue:
    """根据字面文本推断条件右操作数的类型"""
    if text == "true":
        return True
    if text == "false":
        return False
    if _NUMBER_RE.match(text):
        return to_number(text)
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def parse_condition_expression(expression: str) -> Condition:
    """
    解析形如 "<identifier> <operator> <value>" 的条件字符串

    Raises:
        ValueError: 不是恰好三段，或运算符未知
    """
    parts = expression.split()
    if len(parts) != 3:
        raise ValueError(f"Invalid condition format: '{expression}'")

    left_operand, operator_text, right_text = parts
    operator = OPERATORS.get(operator_text)
    if operator is None:
        raise ValueError(f"Unknown operator '{operator_text}' in condition '{expression}'")

    return Condition(
        left_operand=left_operand,
        operator=operator,
        right_operand=sniff_value(right_text)
    )


class _WorkflowParser:
    """单次解析的游标状态（每次 parse 新建）"""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.pending = PendingReferences()

    def parse_workflow(self) -> Workflow:
        self._skip_comments()
        self._consume(TokenType.WORKFLOW, "Expected workflow keyword")
        name = self._parse_string()
        self._consume(TokenType.LEFT_BRACE, "Expected { after workflow name")

        workflow = Workflow(name=name)

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._match(TokenType.DESCRIPTION):
                workflow.description = self._parse_string()
            elif self._match(TokenType.VERSION):
                workflow.version = self._parse_string()
            elif self._match(TokenType.TRACK):
                workflow.add_track(self._parse_track())
            elif self._peek().type in NODE_KEYWORDS:
                keyword = self._advance()
                workflow.add_node(self._parse_node(NODE_KEYWORDS[keyword.type]))
            elif self._match(TokenType.DEPENDENCIES):
                # 多个 dependencies 块依次拼接
                workflow.dependencies.extend(self._parse_dependencies())
            elif self._match(TokenType.COMMENT):
                continue
            else:
                raise self._error(self._peek(), "Expected workflow element")

        self._consume(TokenType.RIGHT_BRACE, "Expected } after workflow definition")
        self._skip_comments()
        self._consume(TokenType.EOF, "Unexpected content after workflow definition")

        return workflow

    def _parse_track(self) -> Track:
        name = self._parse_string()
        self._consume(TokenType.LEFT_BRACE, "Expected { after track name")

        track = Track(name=name)

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._match(TokenType.DESCRIPTION):
                track.description = self._parse_string()
            elif self._match(TokenType.COMMENT):
                continue
            else:
                raise self._error(self._peek(), "Expected track property")

        self._consume(TokenType.RIGHT_BRACE, "Expected } after track definition")
        return track

    def _parse_node(self, node_type: NodeType) -> WorkflowNode:
        keyword = NODE_TYPE_KEYWORDS[node_type]
        name = self._parse_string()
        self._consume(TokenType.LEFT_BRACE, f"Expected {{ after {keyword} node name")

        node = create_node(node_type, name=name)

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            token = self._peek()

            if self._match(TokenType.DESCRIPTION):
                node.description = self._parse_string()
            elif self._match(TokenType.TRACK):
                # 轨道按名称引用，稍后解析
                name_token = self._peek()
                track_name = self._parse_string()
                self.pending.node_tracks.append(NodeTrackReference(node, track_name, name_token))
            elif self._match(TokenType.TYPE):
                self._require(node, TaskNode, token, keyword)
                node.task_type = self._parse_string()
            elif self._match(TokenType.PARAMETERS):
                self._require(node, TaskNode, token, keyword)
                node.parameters = self._parse_object()
            elif self._match(TokenType.RESOURCES):
                node.resource_requirements.extend(self._parse_resources())
            elif self._match(TokenType.CONDITION):
                self._require(node, DecisionNode, token, keyword)
                self._parse_decision_branch(node)
            elif self._match(TokenType.DEFAULT):
                self._require(node, DecisionNode, token, keyword)
                target_token = self._peek()
                target_name = self._parse_string()
                self.pending.default_targets.append(
                    DefaultTargetReference(node, target_name, target_token)
                )
            elif self._match(TokenType.WAIT_FOR_ALL):
                self._require(node, SyncPointNode, token, keyword)
                node.config.wait_for_all = self._parse_boolean()
            elif self._match(TokenType.TIMEOUT):
                if isinstance(node, TaskNode):
                    node.timeout = self._parse_number()
                elif isinstance(node, SyncPointNode):
                    node.config.timeout = self._parse_number()
                else:
                    raise self._error(token, f"timeout property not valid for {keyword} nodes")
            elif self._match(TokenType.RETRIES):
                self._require(node, TaskNode, token, keyword)
                retries_token = self._peek()
                retries = self._parse_number()
                if not isinstance(retries, int):
                    raise self._error(retries_token, "retries must be an integer")
                node.retries = retries
            elif self._match(TokenType.COMMENT):
                continue
            else:
                raise self._error(token, f"Expected {keyword} node property")

        self._consume(TokenType.RIGHT_BRACE, f"Expected }} after {keyword} node definition")
        return node

    def _parse_decision_branch(self, node: DecisionNode):
        """condition "<expr>" then "<target>" """
        expression_token = self._consume(TokenType.STRING, "Expected condition string")
        self._consume(TokenType.THEN, "Expected then keyword after condition")
        target_token = self._peek()
        target_name = self._parse_string()

        condition = self._condition_from_token(expression_token)
        node.add_condition(condition)
        self.pending.condition_targets.append(
            ConditionTargetReference(node, condition, target_name, target_token)
        )

    def _parse_dependencies(self) -> List[Dependency]:
        self._consume(TokenType.LEFT_BRACE, "Expected { after dependencies keyword")

        dependencies: List[Dependency] = []

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._check(TokenType.STRING):
                source_token = self._peek()
                source_name = self._parse_string()
                self._consume(TokenType.ARROW, "Expected -> in dependency definition")
                target_name = self._parse_string()

                # 端点暂存名称，解析阶段替换为ID
                dependency = Dependency(source_id=source_name, target_id=target_name)

                if self._match(TokenType.WHEN):
                    expression_token = self._consume(
                        TokenType.STRING, "Expected condition string after when"
                    )
                    dependency.set_condition(self._condition_from_token(expression_token))
                elif self._match(TokenType.DEFAULT):
                    dependency.type = DependencyType.CONDITIONAL
                elif self._match(TokenType.SYNC):
                    dependency.type = DependencyType.SYNC

                dependencies.append(dependency)
                self.pending.dependencies.append(
                    DependencyReference(dependency, source_name, target_name, source_token)
                )
            elif self._match(TokenType.COMMENT):
                continue
            else:
                raise self._error(self._peek(), "Expected dependency definition")

        self._consume(TokenType.RIGHT_BRACE, "Expected } after dependencies section")
        return dependencies

    def _parse_resources(self) -> List[ResourceRequirement]:
        self._consume(TokenType.LEFT_BRACE, "Expected { after resources keyword")

        resources: List[ResourceRequirement] = []

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._match(TokenType.COMMENT):
                continue

            key = self._parse_key("Expected resource definition")
            self._consume(TokenType.COLON, "Expected : after resource type")
            amount = self._parse_number()

            try:
                resource_type = ResourceType(key)
            except ValueError:
                resource_type = ResourceType.CUSTOM

            resources.append(ResourceRequirement(
                resource_type=resource_type,
                amount=amount,
                resource_id=key if resource_type == ResourceType.CUSTOM else None
            ))
            self._match(TokenType.COMMA)

        self._consume(TokenType.RIGHT_BRACE, "Expected } after resources section")
        return resources

    def _parse_object(self) -> Dict[str, Any]:
        self._consume(TokenType.LEFT_BRACE, "Expected { to start object")

        obj: Dict[str, Any] = {}

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            if self._match(TokenType.COMMENT):
                continue

            key = self._parse_key("Expected parameter name")
            self._consume(TokenType.COLON, "Expected : after parameter name")
            obj[key] = self._parse_value()
            self._match(TokenType.COMMA)

        self._consume(TokenType.RIGHT_BRACE, "Expected } after object")
        return obj

    def _parse_array(self) -> List[Any]:
        self._consume(TokenType.LEFT_BRACKET, "Expected [ for array")

        items: List[Any] = []

        self._skip_comments()
        while not self._check(TokenType.RIGHT_BRACKET) and not self._is_at_end():
            items.append(self._parse_value())
            self._skip_comments()
            if not self._match(TokenType.COMMA):
                break
            self._skip_comments()

        self._consume(TokenType.RIGHT_BRACKET, "Expected ] after array")
        return items

    def _parse_value(self) -> Any:
        if self._check(TokenType.STRING):
            return self._parse_string()
        if self._check(TokenType.NUMBER):
            return self._parse_number()
        if self._check(TokenType.BOOLEAN):
            return self._parse_boolean()
        if self._check(TokenType.LEFT_BRACKET):
            return self._parse_array()
        if self._check(TokenType.LEFT_BRACE):
            return self._parse_object()
        raise self._error(self._peek(), "Expected value")

    def _parse_key(self, message: str) -> str:
        """对象键：标识符、字符串或关键字"""
        token = self._peek()
        if token.type in (TokenType.IDENTIFIER, TokenType.STRING) or token.type in KEYWORD_TYPES:
            self._advance()
            return token.value
        raise self._error(token, message)

    def _parse_string(self) -> str:
        return self._consume(TokenType.STRING, "Expected string").value

    def _parse_number(self) -> Union[int, float]:
        return to_number(self._consume(TokenType.NUMBER, "Expected number").value)

    def _parse_boolean(self) -> bool:
        return self._consume(TokenType.BOOLEAN, "Expected boolean").value == "true"

    def _condition_from_token(self, token: Token) -> Condition:
        try:
            return parse_condition_expression(token.value)
        except ValueError as e:
            raise DSLSyntaxError(str(e), token.line, token.column) from e

    def _require(self, node: WorkflowNode, node_class: type, token: Token, keyword: str):
        """节点类型专属属性检查"""
        if not isinstance(node, node_class):
            raise self._error(token, f"{token.value} property not valid for {keyword} nodes")

    def _skip_comments(self):
        while self._check(TokenType.COMMENT):
            self._advance()

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _match(self, token_type: TokenType) -> bool:
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), message)

    def _advance(self) -> Token:
        token = self._peek()
        if not self._is_at_end():
            self.current += 1
        return token

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _error(self, token: Token, message: str) -> DSLSyntaxError:
        found = token.value if token.type != TokenType.EOF else "end of input"
        return DSLSyntaxError(f"{message} (found '{found}')", token.line, token.column)


class DslParser:
    """工作流 DSL 解析器

    parse 是全有或全无的：任何词法、语法或名称解析错误都会直接抛出，
    不返回部分结果。每次调用使用独立的游标状态，实例可重复使用。
    """

    def __init__(self, strict_names: bool = False):
        self.strict_names = strict_names

    def parse(self, source: str) -> Workflow:
        """
        解析 DSL 文本

        Args:
            source: DSL 文本

        Returns:
            Workflow: 所有名称引用均已解析为ID的工作流

        Raises:
            DSLSyntaxError: 词法或语法错误
            DSLResolutionError: 引用了不存在的节点或轨道
        """
        tokens = Lexer().tokenize(source)
        parser = _WorkflowParser(tokens)
        workflow = parser.parse_workflow()

        NameResolver(strict=self.strict_names).resolve(workflow, parser.pending)

        logger.debug(
            f"Parsed workflow '{workflow.name}': {len(workflow.nodes)} nodes, "
            f"{len(workflow.dependencies)} dependencies, {len(workflow.tracks)} tracks"
        )
        return workflow

    def parse_file(self, file_path: Union[str, Path]) -> Workflow:
        """解析 DSL 文件"""
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse(content)


def parse(source: str, strict_names: bool = False) -> Workflow:
    """解析 DSL 文本"""
    return DslParser(strict_names=strict_names).parse(source)
