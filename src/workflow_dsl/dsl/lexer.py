"""
DSL 词法分析器
"""
import logging
from typing import List

from .grammar import Token, TokenType, KEYWORDS, SYMBOLS, ESCAPES
from ..exceptions import DSLSyntaxError


logger = logging.getLogger(__name__)


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_identifier_start(char: str) -> bool:
    return char == "_" or ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_identifier_part(char: str) -> bool:
    return _is_identifier_start(char) or _is_digit(char)


class Lexer:
    """将 DSL 文本切分为带行列信息的词法单元序列

    实例不可并发复用，每次 tokenize 都会重置内部状态。
    """

    def __init__(self):
        self.source = ""
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def tokenize(self, source: str) -> List[Token]:
        """
        对源文本做词法分析

        Args:
            source: DSL 文本

        Returns:
            List[Token]: 以 EOF 结尾的词法单元列表

        Raises:
            DSLSyntaxError: 遇到无法识别的字符、未闭合的字符串或注释
        """
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens = []

        while not self._at_end():
            char = self._peek_char()

            # 空白
            if char.isspace():
                self._advance_char()
                continue

            # 注释
            if char == "/" and self._peek_char(1) == "/":
                self._line_comment()
                continue
            if char == "/" and self._peek_char(1) == "*":
                self._block_comment()
                continue

            # 单字符符号
            if char in SYMBOLS:
                self._add(SYMBOLS[char], char, self.line, self.column)
                self._advance_char()
                continue

            # 箭头
            if char == "-" and self._peek_char(1) == ">":
                self._add(TokenType.ARROW, "->", self.line, self.column)
                self._advance_char()
                self._advance_char()
                continue

            if char == '"':
                self._string()
                continue

            if _is_digit(char):
                self._number()
                continue

            if _is_identifier_start(char):
                self._identifier()
                continue

            raise DSLSyntaxError(f"Unexpected character '{char}'", self.line, self.column)

        self._add(TokenType.EOF, "", self.line, self.column)
        logger.debug(f"Tokenized {len(self.tokens)} tokens from {self.line} lines")
        return self.tokens

    def _line_comment(self):
        start, line, column = self.pos, self.line, self.column
        while not self._at_end() and self._peek_char() != "\n":
            self._advance_char()
        self._add(TokenType.COMMENT, self.source[start:self.pos], line, column)

    def _block_comment(self):
        start, line, column = self.pos, self.line, self.column
        self._advance_char()
        self._advance_char()
        while not (self._peek_char() == "*" and self._peek_char(1) == "/"):
            if self._at_end():
                raise DSLSyntaxError("Unterminated block comment", line, column)
            self._advance_char()
        self._advance_char()
        self._advance_char()
        self._add(TokenType.COMMENT, self.source[start:self.pos], line, column)

    def _string(self):
        line, column = self.line, self.column
        self._advance_char()  # 开头的引号
        chars = []

        while True:
            if self._at_end():
                raise DSLSyntaxError("Unterminated string", line, column)
            char = self._advance_char()
            if char == '"':
                break
            if char == "\\" and not self._at_end():
                escaped = self._advance_char()
                # 未知转义保持原样
                chars.append(ESCAPES.get(escaped, "\\" + escaped))
            else:
                chars.append(char)

        self._add(TokenType.STRING, "".join(chars), line, column)

    def _number(self):
        start, line, column = self.pos, self.line, self.column
        while _is_digit(self._peek_char()):
            self._advance_char()
        if self._peek_char() == "." and _is_digit(self._peek_char(1)):
            self._advance_char()
            while _is_digit(self._peek_char()):
                self._advance_char()
        self._add(TokenType.NUMBER, self.source[start:self.pos], line, column)

    def _identifier(self):
        start, line, column = self.pos, self.line, self.column
        while _is_identifier_part(self._peek_char()):
            self._advance_char()
        value = self.source[start:self.pos]
        self._add(KEYWORDS.get(value, TokenType.IDENTIFIER), value, line, column)

    def _add(self, token_type: TokenType, value: str, line: int, column: int):
        self.tokens.append(Token(token_type, value, line, column))

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek_char(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index >= len(self.source):
            return ""
        return self.source[index]

    def _advance_char(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char


def tokenize(source: str) -> List[Token]:
    """对 DSL 文本做词法分析"""
    return Lexer().tokenize(source)
