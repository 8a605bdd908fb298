"""DSL lexer, parser, resolver and generator"""

from .grammar import Token, TokenType, KEYWORDS
from .lexer import Lexer, tokenize
from .parser import DslParser, parse, parse_condition_expression
from .resolver import NameResolver, PendingReferences
from .generator import DslGenerator, generate, format_condition

__all__ = [
    "Token",
    "TokenType",
    "KEYWORDS",
    "Lexer",
    "tokenize",
    "DslParser",
    "parse",
    "parse_condition_expression",
    "NameResolver",
    "PendingReferences",
    "DslGenerator",
    "generate",
    "format_condition"
]
