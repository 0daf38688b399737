"""
C# Structural Parser

Converts a token stream from the lexer into a SourceTree: the namespace
declarations of a file, the using directives in scope at each of them, and
the dotted name references found in code.

This is not a full C# parser. Type and member bodies are skipped as balanced
brace blocks; only the namespace-level structure and dotted names survive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from multiservice_lint.lexer import Lexer, Token, TokenType


# Reserved C# keywords. A dotted chain starting with one of these
# (this.x, base.Foo, string.Empty) is a member access, never a namespace.
KEYWORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach",
    "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
    "lock", "long", "namespace", "new", "null", "object", "operator",
    "out", "override", "params", "private", "protected", "public",
    "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
    "ushort", "using", "virtual", "void", "volatile", "while",
})


@dataclass(frozen=True)
class Location:
    """A source span. Lines and columns are 1-based."""
    path: str
    line: int
    column: int
    end_line: int
    end_column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True)
class UsingDirective:
    """A using directive: using X; using static X; using A = X; global using X;"""
    name: str
    location: Location
    alias: Optional[str] = None
    is_static: bool = False
    is_global: bool = False


@dataclass(frozen=True)
class TypeReference:
    """A dotted name found in code, e.g. Acme.OrderService.Client."""
    name: str
    location: Location


@dataclass(frozen=True)
class NamespaceDeclaration:
    """
    A block-scoped or file-scoped namespace declaration.

    name is the name as written; full_name includes the names of
    enclosing namespace declarations. usings and references only hold the
    directives and dotted names lexically inside this declaration and not
    inside a nested one. enclosing_usings are the usings of enclosing
    declarations, outermost first.
    """
    name: str
    full_name: str
    location: Location
    file_scoped: bool = False
    usings: tuple[UsingDirective, ...] = ()
    references: tuple[TypeReference, ...] = ()
    enclosing_usings: tuple[UsingDirective, ...] = ()


@dataclass(frozen=True)
class SourceTree:
    """The parsed structure of one C# source file."""
    path: str
    usings: tuple[UsingDirective, ...] = ()
    namespaces: tuple[NamespaceDeclaration, ...] = ()
    references: tuple[TypeReference, ...] = ()
    generated: bool = False

    @property
    def first_namespace(self) -> Optional[str]:
        """Full name of the first namespace declared in document order."""
        return self.namespaces[0].full_name if self.namespaces else None

    @property
    def global_usings(self) -> tuple[UsingDirective, ...]:
        return tuple(u for u in self.usings if u.is_global)

    def all_usings(self) -> list[UsingDirective]:
        """Every using directive in the file, compilation-unit level first."""
        result = list(self.usings)
        for ns in self.namespaces:
            result.extend(ns.usings)
        return result


@dataclass
class _NamespaceBuilder:
    name: str
    full_name: str
    location: Location
    file_scoped: bool
    parent: Optional[_NamespaceBuilder] = None
    usings: list[UsingDirective] = field(default_factory=list)
    references: list[TypeReference] = field(default_factory=list)

    def enclosing_usings(self) -> tuple[UsingDirective, ...]:
        chain = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        result: list[UsingDirective] = []
        for outer in reversed(chain):
            result.extend(outer.usings)
        return tuple(result)

    def freeze(self) -> NamespaceDeclaration:
        return NamespaceDeclaration(
            name=self.name,
            full_name=self.full_name,
            location=self.location,
            file_scoped=self.file_scoped,
            usings=tuple(self.usings),
            references=tuple(self.references),
            enclosing_usings=self.enclosing_usings(),
        )


class Parser:
    """
    Structural parser for C# source files.

    Usage:
        parser = Parser(tokens, path)
        tree = parser.parse()
    """

    def __init__(self, tokens: list[Token], path: str = "<unknown>"):
        self.tokens = tokens
        self.path = path
        self.pos = 0
        self.length = len(tokens)
        self._usings: list[UsingDirective] = []
        self._references: list[TypeReference] = []
        self._namespaces: list[_NamespaceBuilder] = []

    def _current(self) -> Token:
        """Get current token; the trailing EOF token once the stream is exhausted."""
        if self.pos >= self.length:
            return self.tokens[-1]
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Token:
        pos = self.pos + offset
        if pos >= self.length:
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        if self.pos < self.length:
            self.pos += 1
        return token

    def _previous(self) -> Optional[Token]:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def _at(self, token_type: TokenType, value: Optional[str] = None, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token.type == token_type and (value is None or token.value == value)

    def _location(self, first: Token, last: Token) -> Location:
        return Location(self.path, first.line, first.column, last.line, last.end_column)

    def parse(self) -> SourceTree:
        """Parse the token stream into a SourceTree."""
        self._parse_members(None, closing=False)
        return SourceTree(
            path=self.path,
            usings=tuple(self._usings),
            namespaces=tuple(ns.freeze() for ns in self._namespaces),
            references=tuple(self._references),
        )

    def _parse_members(self, ns: Optional[_NamespaceBuilder], closing: bool) -> None:
        """Parse namespace members until the closing brace (or end of file)."""
        while True:
            token = self._current()
            if token.type == TokenType.EOF:
                return
            if token.type == TokenType.RBRACE:
                self._advance()
                if closing:
                    return
                continue
            if token.type == TokenType.LBRACE:
                self._skip_block(ns)
                continue
            if token.type == TokenType.IDENTIFIER:
                if token.value == "global" and self._at(TokenType.IDENTIFIER, "using", 1):
                    self._advance()
                    self._parse_using(ns, is_global=True)
                    continue
                if token.value == "using" and self._is_using_directive():
                    self._parse_using(ns, is_global=False)
                    continue
                if token.value == "namespace":
                    self._parse_namespace(ns)
                    continue
            self._scan_token(ns)

    def _is_using_directive(self) -> bool:
        # using (...) and using var x = ... are statements (top-level programs)
        nxt = self._peek()
        return nxt.type == TokenType.IDENTIFIER and nxt.value != "var"

    def _parse_using(self, ns: Optional[_NamespaceBuilder], is_global: bool) -> None:
        self._advance()  # 'using'
        is_static = False
        if self._at(TokenType.IDENTIFIER, "static"):
            self._advance()
            is_static = True
        alias = None
        if self._at(TokenType.IDENTIFIER) and self._at(TokenType.EQUALS, offset=1):
            alias = self._advance().value
            self._advance()

        name, location = self._read_name()
        is_directive = name is not None and (
            alias is not None or self._at(TokenType.SEMICOLON)
        )
        if is_directive:
            directive = UsingDirective(
                name=name,
                location=location,
                alias=alias,
                is_static=is_static,
                is_global=is_global,
            )
            if ns is not None:
                ns.usings.append(directive)
            else:
                self._usings.append(directive)

        # Skip the remainder (generic alias arguments, or a using declaration statement)
        while not self._at(TokenType.EOF):
            token = self._advance()
            if token.type == TokenType.SEMICOLON:
                break

    def _parse_namespace(self, ns: Optional[_NamespaceBuilder]) -> None:
        self._advance()  # 'namespace'
        name, location = self._read_name()
        if name is None:
            return

        full_name = f"{ns.full_name}.{name}" if ns is not None else name
        if self._at(TokenType.SEMICOLON):
            self._advance()
            builder = _NamespaceBuilder(name, full_name, location, True, ns)
            self._namespaces.append(builder)
            self._parse_members(builder, closing=False)
        elif self._at(TokenType.LBRACE):
            self._advance()
            builder = _NamespaceBuilder(name, full_name, location, False, ns)
            self._namespaces.append(builder)
            self._parse_members(builder, closing=True)

    def _read_name(self) -> tuple[Optional[str], Optional[Location]]:
        """Read [alias::]Ident(.Ident)*; global:: is dropped from the name."""
        if not self._at(TokenType.IDENTIFIER):
            return None, None
        first = self._current()
        if self._at(TokenType.DOUBLE_COLON, offset=1) and self._at(TokenType.IDENTIFIER, offset=2):
            self._advance()
            self._advance()
        parts = [self._advance().value]
        last = self._previous()
        while self._at(TokenType.DOT) and self._at(TokenType.IDENTIFIER, offset=1):
            self._advance()
            last = self._advance()
            parts.append(last.value)
        return ".".join(parts), self._location(first, last)

    def _skip_block(self, ns: Optional[_NamespaceBuilder]) -> None:
        """Skip a balanced {...} block, still collecting dotted references inside it."""
        self._advance()
        depth = 1
        while depth:
            token = self._current()
            if token.type == TokenType.EOF:
                return
            if token.type == TokenType.LBRACE:
                depth += 1
                self._advance()
            elif token.type == TokenType.RBRACE:
                depth -= 1
                self._advance()
            else:
                self._scan_token(ns)

    def _scan_token(self, ns: Optional[_NamespaceBuilder]) -> None:
        """Consume one token, or a whole dotted chain when one starts here."""
        token = self._current()
        prev = self._previous()
        starts_chain = (
            token.type == TokenType.IDENTIFIER
            and (prev is None or prev.type not in (TokenType.DOT, TokenType.DOUBLE_COLON))
            and (token.value not in KEYWORDS or self._at(TokenType.DOUBLE_COLON, offset=1))
        )
        if not starts_chain:
            self._advance()
            return

        name, location = self._read_name()
        if name is None:
            self._advance()
            return
        if "." in name:
            ref = TypeReference(name=name, location=location)
            if ns is not None:
                ns.references.append(ref)
            else:
                self._references.append(ref)


def parse_source(source: str, path: str = "<unknown>") -> SourceTree:
    """Parse C# source text into a SourceTree. Raises LexerError on bad input."""
    tokens = list(Lexer(source, path).tokenize())
    return Parser(tokens, path).parse()
