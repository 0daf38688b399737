"""
C# Lexer (Tokenizer)

Converts C# source text into a stream of tokens.
Handles: identifiers, verbatim identifiers, punctuation, strings (regular,
verbatim, interpolated, raw), character literals, numbers, comments and
preprocessor directives.

Only the structure needed for namespace analysis is preserved. Operators
that never matter for that purpose are emitted as OTHER tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional


class TokenType(Enum):
    """Types of tokens in C# source."""
    IDENTIFIER = auto()      # Foo, namespace, @class
    STRING = auto()          # "text", @"text", $"text {x}", """raw"""
    CHAR = auto()            # 'c', '\n'
    NUMBER = auto()          # 123, 0x1F, 1.5f, 1_000
    DOT = auto()             # .
    DOUBLE_COLON = auto()    # :: (global::Foo, alias::Foo)
    SEMICOLON = auto()       # ;
    COMMA = auto()           # ,
    EQUALS = auto()          # = (assignment / using alias)
    LBRACE = auto()          # {
    RBRACE = auto()          # }
    LPAREN = auto()          # (
    RPAREN = auto()          # )
    LESS_THAN = auto()       # <
    GREATER_THAN = auto()    # >
    OTHER = auto()           # any other operator or punctuation
    EOF = auto()             # End of file


@dataclass
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: str
    line: int
    column: int
    end_column: int = 0

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


class LexerError(Exception):
    """Error during lexical analysis."""
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Lexer error at line {line}, column {column}: {message}")


_SINGLE_CHAR_TOKENS = {
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '<': TokenType.LESS_THAN,
    '>': TokenType.GREATER_THAN,
}


class Lexer:
    """
    Tokenizer for C# source files.

    Usage:
        lexer = Lexer(source_text)
        tokens = list(lexer.tokenize())
    """

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        """Check if character can start an identifier (letter or underscore)."""
        return ch == '_' or ch.isalpha()

    @staticmethod
    def _is_ident_cont(ch: str) -> bool:
        """Check if character can continue an identifier."""
        return ch == '_' or ch.isalnum()

    def __init__(self, source: str, filename: str = "<unknown>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.length = len(source)
        # Preprocessor directives are only recognized as the first token on a line
        self._at_line_start = True

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
                self._at_line_start = True
            else:
                self.column += 1
        return ch

    def _skip_whitespace(self) -> None:
        """Skip spaces, tabs and newlines."""
        while True:
            ch = self._current()
            if ch is None or not ch.isspace():
                return
            self._advance()

    def _skip_to_line_end(self) -> None:
        while self._current() not in (None, '\n'):
            self._advance()

    def _skip_block_comment(self) -> None:
        start_line, start_col = self.line, self.column
        self._advance()
        self._advance()
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated comment", start_line, start_col)
            if ch == '*' and self._peek() == '/':
                self._advance()
                self._advance()
                return
            self._advance()

    def _read_regular_string(self) -> str:
        """Read a "..." string, handling backslash escapes."""
        start_line, start_col = self.line, self.column
        self._advance()
        result = []
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                raise LexerError("Unterminated string", start_line, start_col)
            if ch == '"':
                self._advance()
                return ''.join(result)
            if ch == '\\':
                self._advance()
                esc = self._current()
                if esc is None:
                    raise LexerError("Unterminated string", start_line, start_col)
                result.append('\\' + esc)
                self._advance()
                continue
            result.append(ch)
            self._advance()

    def _read_verbatim_string(self) -> str:
        """Read a @"..." string where "" is an escaped quote."""
        start_line, start_col = self.line, self.column
        self._advance()
        result = []
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated verbatim string", start_line, start_col)
            if ch == '"':
                if self._peek() == '"':
                    result.append('"')
                    self._advance()
                    self._advance()
                    continue
                self._advance()
                return ''.join(result)
            result.append(ch)
            self._advance()

    def _read_raw_string(self) -> str:
        """Read a \"\"\"...\"\"\" raw string literal (three or more quotes)."""
        start_line, start_col = self.line, self.column
        quotes = 0
        while self._current() == '"':
            quotes += 1
            self._advance()
        result = []
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated raw string", start_line, start_col)
            if ch == '"':
                run = 0
                while self._peek(run) == '"':
                    run += 1
                if run >= quotes:
                    for _ in range(run):
                        self._advance()
                    return ''.join(result)
            result.append(ch)
            self._advance()

    def _skip_interpolation_hole(self) -> None:
        """Skip an {expression} inside an interpolated string, including nested literals."""
        start_line, start_col = self.line, self.column
        self._advance()
        depth = 1
        while depth:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated interpolation", start_line, start_col)
            if ch == '{':
                depth += 1
                self._advance()
            elif ch == '}':
                depth -= 1
                self._advance()
            elif ch == '"' or (ch in '@$' and self._peek() in ('"', '@', '$')):
                self._read_string_literal()
            elif ch == "'":
                self._read_char()
            else:
                self._advance()

    def _read_interpolated_string(self, verbatim: bool) -> str:
        """Read $"..." or $@"..."; interpolation holes are skipped, not tokenized."""
        start_line, start_col = self.line, self.column
        self._advance()
        result = []
        while True:
            ch = self._current()
            if ch is None or (ch == '\n' and not verbatim):
                raise LexerError("Unterminated interpolated string", start_line, start_col)
            if ch == '{':
                if self._peek() == '{':
                    result.append('{')
                    self._advance()
                    self._advance()
                else:
                    self._skip_interpolation_hole()
                continue
            if ch == '"':
                if verbatim and self._peek() == '"':
                    result.append('"')
                    self._advance()
                    self._advance()
                    continue
                self._advance()
                return ''.join(result)
            if ch == '\\' and not verbatim:
                self._advance()
                if self._current() is not None:
                    result.append('\\' + self._current())
                    self._advance()
                continue
            result.append(ch)
            self._advance()

    def _read_string_literal(self) -> str:
        """Dispatch on the string prefix (@, $, $@, @$, raw) and read the literal."""
        prefix = []
        while self._current() in ('@', '$'):
            prefix.append(self._advance())
        verbatim = '@' in prefix
        interpolated = '$' in prefix
        # Raw literals cannot be verbatim: @"""" is a verbatim string holding one quote
        if not verbatim and self._current() == '"' and self._peek() == '"' and self._peek(2) == '"':
            return self._read_raw_string()
        if interpolated:
            return self._read_interpolated_string(verbatim)
        if verbatim:
            return self._read_verbatim_string()
        return self._read_regular_string()

    def _read_char(self) -> str:
        """Read a character literal like 'a' or '\\''."""
        start_line, start_col = self.line, self.column
        self._advance()
        result = []
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                raise LexerError("Unterminated character literal", start_line, start_col)
            if ch == "'":
                self._advance()
                return ''.join(result)
            if ch == '\\':
                result.append(ch)
                self._advance()
                ch = self._current()
                if ch is None:
                    raise LexerError("Unterminated character literal", start_line, start_col)
            result.append(ch)
            self._advance()

    def _read_identifier(self) -> str:
        """Read an identifier (a single name, never dotted)."""
        result = []
        while True:
            ch = self._current()
            if ch is None or not self._is_ident_cont(ch):
                break
            result.append(ch)
            self._advance()
        return ''.join(result)

    def _read_number(self) -> str:
        """Read a numeric literal, including hex, separators and suffixes."""
        result = []
        while True:
            ch = self._current()
            if ch is None:
                break
            if ch.isalnum() or ch == '_':
                result.append(ch)
                self._advance()
            elif ch == '.' and (self._peek() or '').isdigit():
                result.append(ch)
                self._advance()
            else:
                break
        return ''.join(result)

    def tokenize(self) -> Iterator[Token]:
        """Generate tokens from the source. Comments and directives are dropped."""
        while True:
            self._skip_whitespace()

            ch = self._current()
            start_line = self.line
            start_col = self.column

            if ch is None:
                yield Token(TokenType.EOF, '', start_line, start_col, start_col)
                break

            # Preprocessor directive: #if, #region, #pragma ...
            if ch == '#' and self._at_line_start:
                self._skip_to_line_end()
                continue

            self._at_line_start = False

            # Comments
            if ch == '/' and self._peek() == '/':
                self._skip_to_line_end()
                continue
            if ch == '/' and self._peek() == '*':
                self._skip_block_comment()
                continue

            # Strings (with optional @ / $ prefixes)
            if ch == '"' or (ch in '@$' and self._peek() in ('"', '@', '$')):
                value = self._read_string_literal()
                yield Token(TokenType.STRING, value, start_line, start_col, self.column)
                continue

            if ch == "'":
                value = self._read_char()
                yield Token(TokenType.CHAR, value, start_line, start_col, self.column)
                continue

            # Verbatim identifier: @class
            if ch == '@' and self._peek() is not None and self._is_ident_start(self._peek()):
                self._advance()
                value = self._read_identifier()
                yield Token(TokenType.IDENTIFIER, value, start_line, start_col, self.column)
                continue

            if self._is_ident_start(ch):
                value = self._read_identifier()
                yield Token(TokenType.IDENTIFIER, value, start_line, start_col, self.column)
                continue

            if ch.isdigit() or (ch == '.' and (self._peek() or '').isdigit()):
                value = self._read_number()
                yield Token(TokenType.NUMBER, value, start_line, start_col, self.column)
                continue

            if ch == ':' and self._peek() == ':':
                self._advance()
                self._advance()
                yield Token(TokenType.DOUBLE_COLON, '::', start_line, start_col, self.column)
                continue

            if ch == '.':
                self._advance()
                yield Token(TokenType.DOT, '.', start_line, start_col, self.column)
                continue

            if ch == '=':
                self._advance()
                # ==, => are operators, not assignment
                if self._current() in ('=', '>'):
                    op = '=' + self._advance()
                    yield Token(TokenType.OTHER, op, start_line, start_col, self.column)
                else:
                    yield Token(TokenType.EQUALS, '=', start_line, start_col, self.column)
                continue

            if ch in _SINGLE_CHAR_TOKENS:
                self._advance()
                yield Token(_SINGLE_CHAR_TOKENS[ch], ch, start_line, start_col, self.column)
                continue

            # Any other operator or punctuation character
            self._advance()
            yield Token(TokenType.OTHER, ch, start_line, start_col, self.column)


def tokenize(source: str, filename: str = "<unknown>") -> list[Token]:
    """Convenience wrapper: tokenize a whole source string."""
    return list(Lexer(source, filename).tokenize())
