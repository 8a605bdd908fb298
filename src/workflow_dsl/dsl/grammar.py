"""
工作流 DSL 语法定义

示例:

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
        }
        resources {cpu: 2, memory: 4096}
      }

      decision "Quality Check" {
        condition "quality_score > 0.8" then "Analyze Data"
        default "Data Quality Error"
      }

      sync "Data Loaded" {
        wait_for_all true
        timeout 300000
      }

      end "Complete Pipeline" {}

      dependencies {
        "Begin Pipeline" -> "Load CSV Data"
        "Quality Check" -> "Analyze Data" when "quality_score > 0.8"
        "Quality Check" -> "Data Quality Error" default
      }
    }
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from ..models.workflow import ConditionOperator, NodeType


class TokenType(Enum):
    """词法单元类型"""
    # 关键字
    WORKFLOW = "WORKFLOW"
    TRACK = "TRACK"
    TASK = "TASK"
    DECISION = "DECISION"
    SYNC = "SYNC"
    START = "START"
    END = "END"
    DEPENDENCIES = "DEPENDENCIES"
    RESOURCES = "RESOURCES"
    PARAMETERS = "PARAMETERS"
    CONDITION = "CONDITION"
    THEN = "THEN"
    WHEN = "WHEN"
    DEFAULT = "DEFAULT"
    DESCRIPTION = "DESCRIPTION"
    VERSION = "VERSION"
    TYPE = "TYPE"
    WAIT_FOR_ALL = "WAIT_FOR_ALL"
    TIMEOUT = "TIMEOUT"
    RETRIES = "RETRIES"

    # 字面量
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"

    # 符号
    LEFT_BRACE = "LEFT_BRACE"
    RIGHT_BRACE = "RIGHT_BRACE"
    LEFT_PAREN = "LEFT_PAREN"
    RIGHT_PAREN = "RIGHT_PAREN"
    LEFT_BRACKET = "LEFT_BRACKET"
    RIGHT_BRACKET = "RIGHT_BRACKET"
    ARROW = "ARROW"
    COLON = "COLON"
    COMMA = "COMMA"

    # 其他
    IDENTIFIER = "IDENTIFIER"
    COMMENT = "COMMENT"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """词法单元"""
    type: TokenType
    value: str
    line: int
    column: int


KEYWORDS: Dict[str, TokenType] = {
    "workflow": TokenType.WORKFLOW,
    "track": TokenType.TRACK,
    "task": TokenType.TASK,
    "decision": TokenType.DECISION,
    "sync": TokenType.SYNC,
    "start": TokenType.START,
    "end": TokenType.END,
    "dependencies": TokenType.DEPENDENCIES,
    "resources": TokenType.RESOURCES,
    "parameters": TokenType.PARAMETERS,
    "condition": TokenType.CONDITION,
    "then": TokenType.THEN,
    "when": TokenType.WHEN,
    "default": TokenType.DEFAULT,
    "description": TokenType.DESCRIPTION,
    "version": TokenType.VERSION,
    "type": TokenType.TYPE,
    "wait_for_all": TokenType.WAIT_FOR_ALL,
    "timeout": TokenType.TIMEOUT,
    "retries": TokenType.RETRIES,
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
}

SYMBOLS: Dict[str, TokenType] = {
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

# 节点关键字与节点类型的对应关系
NODE_KEYWORDS: Dict[TokenType, NodeType] = {
    TokenType.START: NodeType.START,
    TokenType.END: NodeType.END,
    TokenType.TASK: NodeType.TASK,
    TokenType.DECISION: NodeType.DECISION,
    TokenType.SYNC: NodeType.SYNC_POINT,
}

NODE_TYPE_KEYWORDS: Dict[NodeType, str] = {
    NodeType.START: "start",
    NodeType.END: "end",
    NodeType.TASK: "task",
    NodeType.DECISION: "decision",
    NodeType.SYNC_POINT: "sync",
}

OPERATORS: Dict[str, ConditionOperator] = {
    "==": ConditionOperator.EQUALS,
    "=": ConditionOperator.EQUALS,
    "equals": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    "not_equals": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    "greater_than": ConditionOperator.GREATER_THAN,
    "<": ConditionOperator.LESS_THAN,
    "less_than": ConditionOperator.LESS_THAN,
    ">=": ConditionOperator.GREATER_THAN_OR_EQUALS,
    "greater_than_or_equals": ConditionOperator.GREATER_THAN_OR_EQUALS,
    "<=": ConditionOperator.LESS_THAN_OR_EQUALS,
    "less_than_or_equals": ConditionOperator.LESS_THAN_OR_EQUALS,
    "contains": ConditionOperator.CONTAINS,
    "not_contains": ConditionOperator.NOT_CONTAINS,
    "starts_with": ConditionOperator.STARTS_WITH,
    "ends_with": ConditionOperator.ENDS_WITH,
    "regex": ConditionOperator.REGEX,
}

# 生成 DSL 时使用的运算符写法
OPERATOR_SYMBOLS: Dict[ConditionOperator, str] = {
    ConditionOperator.EQUALS: "==",
    ConditionOperator.NOT_EQUALS: "!=",
    ConditionOperator.GREATER_THAN: ">",
    ConditionOperator.LESS_THAN: "<",
    ConditionOperator.GREATER_THAN_OR_EQUALS: ">=",
    ConditionOperator.LESS_THAN_OR_EQUALS: "<=",
    ConditionOperator.CONTAINS: "contains",
    ConditionOperator.NOT_CONTAINS: "not_contains",
    ConditionOperator.STARTS_WITH: "starts_with",
    ConditionOperator.ENDS_WITH: "ends_with",
    ConditionOperator.REGEX: "regex",
}

# 字符串转义（解析时解码，生成时编码）
ESCAPES: Dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

NUMBER_PATTERN = r"^[0-9]+(\.[0-9]+)?$"
IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
