"""Lightweight Kotlin lexer and the declaration and call finders built on it."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

_KEYWORDS = frozenset(
    {
        "as", "break", "class", "continue", "do", "else", "false", "for", "fun", "if",
        "in", "interface", "is", "null", "object", "package", "return", "super", "this",
        "throw", "true", "try", "typealias", "typeof", "val", "var", "when", "while",
    }
)

_MODIFIERS = frozenset(
    {
        "public", "private", "protected", "internal", "abstract", "final", "open",
        "override", "inline", "suspend", "tailrec", "operator", "infix", "external",
        "expect", "actual", "data", "sealed", "enum", "annotation", "inner", "lateinit",
        "const", "vararg", "noinline", "crossinline", "reified", "companion", "value",
    }
)

_USE_SITE_TARGETS = frozenset(
    {"file", "property", "field", "get", "set", "receiver", "param", "setparam", "delegate"}
)

_OPERATORS = (
    "===", "!==", "..<", "?.", "?:", "::", "->", "==", "!=", "<=", ">=", "&&", "||",
    "..", "++", "--", "+=", "-=", "*=", "/=", "%=", "!!",
)

_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+[uUL]*"
    r"|0[bB][01_]+[uUL]*"
    r"|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d[\d_]*)?[fFuUL]*",
    re.ASCII,
)

_DIGITS = "0123456789"

# Identifiers that are followed by "(" or "{" without being calls.
_NON_CALL_WORDS = frozenset({"init", "constructor", "catch", "finally"})

_DECLARING_KEYWORDS = frozenset(
    {"fun", "class", "object", "interface", "typealias", "val", "var"}
)

_CALL_BLOCKING_PUNCT = frozenset({".", "?.", "::", ":", "@"})

_TYPE_ARGUMENT_PUNCT = frozenset({",", ".", "?", "*", "<", ">", ":", "(", ")", "->", "?."})


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    ANNOTATION = "annotation"
    STRING = "string"
    CHAR = "char"
    NUMBER = "number"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    """One lexical token; ``line`` and ``column`` are one-based, columns count UTF-8 bytes.

    Annotation tokens hold the annotation's name without the ``@`` and without a
    use-site target; backtick identifiers hold the name without the backticks.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    newline_before: bool = False


@dataclass(frozen=True)
class FunctionDecl:
    """A named function declaration and the annotation type names in its modifiers."""

    name: str
    line: int
    column: int
    annotations: tuple[str, ...] = ()


@dataclass(frozen=True)
class CallSite:
    """A call whose callee is a plain, unqualified identifier."""

    name: str
    line: int
    column: int


class KotlinSyntaxError(ValueError):
    """Raised when the source cannot be tokenized."""

    def __init__(self, message: str, line: int, column: int) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{line}:{column}: {message}")


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


class _Lexer:
    def __init__(self, source: str) -> None:
        self.src = source
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.newline_pending = False
        self.tokens: list[Token] = []

    def _column(self, pos: int) -> int:
        return len(self.src[self.line_start : pos].encode("utf-8")) + 1

    def _move(self, end: int, *, significant: bool = True) -> None:
        newlines = self.src.count("\n", self.pos, end)
        if newlines:
            self.line += newlines
            self.line_start = self.src.rfind("\n", self.pos, end) + 1
            if significant:
                self.newline_pending = True
        self.pos = end

    def _error(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is None or column is None:
            line, column = self.line, self._column(self.pos)
        return KotlinSyntaxError(message, line, column)

    def _emit(self, kind: TokenKind, end: int, text: Optional[str] = None) -> None:
        start = self.pos
        token = Token(
            kind=kind,
            text=self.src[start:end] if text is None else text,
            line=self.line,
            column=self._column(start),
            newline_before=self.newline_pending,
        )
        self.newline_pending = False
        self.tokens.append(token)
        self._move(end, significant=False)

    def _identifier_end(self, pos: int) -> int:
        src, n = self.src, len(self.src)
        while pos < n and (src[pos].isalnum() or src[pos] == "_"):
            pos += 1
        return pos

    def run(self, template_at: Optional[tuple[int, int]] = None) -> None:
        depth = 0
        n = len(self.src)
        while self.pos < n:
            ch = self.src[self.pos]
            if template_at is not None and ch in "{}":
                if ch == "}":
                    if depth == 0:
                        self._move(self.pos + 1, significant=False)
                        return
                    depth -= 1
                else:
                    depth += 1
            self._step()
        if template_at is not None:
            raise self._error("unterminated string template", *template_at)

    def _step(self) -> None:
        src, pos, n = self.src, self.pos, len(self.src)
        ch = src[pos]
        if ch == "\n":
            self._move(pos + 1)
        elif ch.isspace() or ch == "\ufeff":
            self.pos += 1
        elif src.startswith("//", pos):
            end = src.find("\n", pos)
            self.pos = n if end == -1 else end
        elif src.startswith("/*", pos):
            self._block_comment()
        elif ch == '"':
            self._string()
        elif ch == "'":
            self._char()
        elif ch == "`":
            self._backtick()
        elif ch == "@":
            self._at()
        elif ch in _DIGITS:
            match = _NUMBER.match(src, pos)
            self._emit(TokenKind.NUMBER, match.end() if match else pos + 1)
        elif _is_identifier_start(ch):
            end = self._identifier_end(pos)
            kind = TokenKind.KEYWORD if src[pos:end] in _KEYWORDS else TokenKind.IDENTIFIER
            self._emit(kind, end)
        else:
            operator = next((op for op in _OPERATORS if src.startswith(op, pos)), ch)
            self._emit(TokenKind.PUNCT, pos + len(operator))

    def _block_comment(self) -> None:
        src, n = self.src, len(self.src)
        depth = 0
        i = self.pos
        while True:
            if i >= n:
                raise self._error("unterminated block comment")
            if src.startswith("/*", i):
                depth += 1
                i += 2
            elif src.startswith("*/", i):
                depth -= 1
                i += 2
                if depth == 0:
                    break
            else:
                i += 1
        self._move(i)

    def _string(self) -> None:
        src, n = self.src, len(self.src)
        start = self.pos
        line, column = self.line, self._column(start)
        raw = src.startswith('"""', start)
        newline_before = self.newline_pending
        self.newline_pending = False
        slot = len(self.tokens)
        self.tokens.append(Token(TokenKind.STRING, "", line, column))

        i = start + (3 if raw else 1)
        while True:
            if i >= n:
                raise self._error("unterminated string literal", line, column)
            ch = src[i]
            if raw:
                if src.startswith('"""', i):
                    end = i + 3
                    while end < n and src[end] == '"':
                        end += 1
                    break
            else:
                if ch == "\n":
                    raise self._error("unterminated string literal", line, column)
                if ch == "\\":
                    i += 2
                    continue
                if ch == '"':
                    end = i + 1
                    break
            if src.startswith("${", i):
                self._move(i + 2, significant=False)
                self.run(template_at=(line, column))
                i = self.pos
                continue
            i += 1

        self._move(end, significant=False)
        self.tokens[slot] = Token(TokenKind.STRING, src[start:end], line, column, newline_before)
        self.newline_pending = False

    def _char(self) -> None:
        src, n = self.src, len(self.src)
        i = self.pos + 1
        while i < n and src[i] not in "'\n":
            i += 2 if src[i] == "\\" else 1
        if i >= n or src[i] != "'":
            raise self._error("unterminated character literal")
        self._emit(TokenKind.CHAR, i + 1)

    def _backtick(self) -> None:
        end = self.src.find("`", self.pos + 1)
        if end == -1 or "\n" in self.src[self.pos + 1 : end]:
            raise self._error("unterminated backtick identifier")
        self._emit(TokenKind.IDENTIFIER, end + 1, text=self.src[self.pos + 1 : end])

    def _at(self) -> None:
        src, pos, n = self.src, self.pos, len(self.src)
        prev = src[pos - 1] if pos else ""
        is_label = bool(prev) and (prev.isalnum() or prev in "_`")
        if is_label or not (pos + 1 < n and _is_identifier_start(src[pos + 1])):
            self._emit(TokenKind.PUNCT, pos + 1)
            return
        name_start = pos + 1
        end = self._identifier_end(name_start)
        name = src[name_start:end]
        if (
            name in _USE_SITE_TARGETS
            and end + 1 < n
            and src[end] == ":"
            and _is_identifier_start(src[end + 1])
        ):
            name_start = end + 1
            end = self._identifier_end(name_start)
            name = src[name_start:end]
        while end + 1 < n and src[end] == "." and _is_identifier_start(src[end + 1]):
            segment_end = self._identifier_end(end + 1)
            name += src[end:segment_end]
            end = segment_end
        self._emit(TokenKind.ANNOTATION, end, text=name)


def tokenize(source: str) -> list[Token]:
    """Split Kotlin source into tokens, dropping whitespace and comments.

    Tokens from ``${...}`` string templates follow the string token they belong
    to. Raises ``KotlinSyntaxError`` for unterminated literals and comments.
    """
    lexer = _Lexer(source)
    lexer.run()
    return lexer.tokens


def _is_punct(token: Token, text: str) -> bool:
    return token.kind is TokenKind.PUNCT and token.text == text


def _skip_balanced(tokens: Sequence[Token], index: int, open_text: str, close_text: str) -> int:
    depth = 0
    while index < len(tokens):
        token = tokens[index]
        if _is_punct(token, open_text):
            depth += 1
        elif _is_punct(token, close_text):
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return index


def _skip_type_arguments(tokens: Sequence[Token], index: int) -> Optional[int]:
    """Return the index after the ``<...>`` starting at ``index``, or ``None``."""
    depth = 0
    while index < len(tokens):
        token = tokens[index]
        if token.kind is TokenKind.PUNCT:
            if token.text not in _TYPE_ARGUMENT_PUNCT:
                return None
            if token.text == "<":
                depth += 1
            elif token.text == ">":
                depth -= 1
                if depth == 0:
                    return index + 1
        elif token.kind is TokenKind.KEYWORD and token.text != "in":
            return None
        elif token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD, TokenKind.ANNOTATION):
            return None
        index += 1
    return None


def _declared_name(tokens: Sequence[Token], index: int) -> Optional[Token]:
    n = len(tokens)
    if index < n and _is_punct(tokens[index], "<"):
        after = _skip_type_arguments(tokens, index)
        if after is None:
            return None
        index = after

    name: Optional[Token] = None
    while index < n:
        token = tokens[index]
        if token.kind is TokenKind.IDENTIFIER:
            name = token
            index += 1
        elif name is None and _is_punct(token, "("):
            index = _skip_balanced(tokens, index, "(", ")")
            if index < n and tokens[index].text in (".", "?."):
                index += 1
                continue
            return None
        else:
            return None

        if index < n and _is_punct(tokens[index], "<"):
            after = _skip_type_arguments(tokens, index)
            if after is None:
                return name
            index = after
        while index < n and _is_punct(tokens[index], "?"):
            index += 1
        if index < n and tokens[index].kind is TokenKind.PUNCT and tokens[index].text in (
            ".",
            "?.",
        ):
            index += 1
            continue
        return name
    return name


def function_declarations(tokens: Sequence[Token]) -> list[FunctionDecl]:
    """Find named ``fun`` declarations, with the annotations in their modifiers.

    An annotation's type name is the first segment of its (possibly qualified) name.
    """
    declarations: list[FunctionDecl] = []
    pending: list[str] = []
    index = 0
    n = len(tokens)
    while index < n:
        token = tokens[index]
        if token.kind is TokenKind.ANNOTATION:
            pending.append(token.text.split(".", 1)[0])
            index += 1
            if index < n and _is_punct(tokens[index], "(") and not tokens[index].newline_before:
                index = _skip_balanced(tokens, index, "(", ")")
            continue
        if token.kind is TokenKind.IDENTIFIER and token.text in _MODIFIERS:
            index += 1
            continue
        if token.kind is TokenKind.KEYWORD and token.text == "fun":
            name = _declared_name(tokens, index + 1)
            if name is not None:
                declarations.append(
                    FunctionDecl(
                        name=name.text,
                        line=name.line,
                        column=name.column,
                        annotations=tuple(pending),
                    )
                )
        pending = []
        index += 1
    return declarations


def _blocks_call(previous: Token) -> bool:
    if previous.kind is TokenKind.PUNCT:
        return previous.text in _CALL_BLOCKING_PUNCT
    if previous.kind is TokenKind.KEYWORD:
        return previous.text in _DECLARING_KEYWORDS
    return False


def simple_calls(tokens: Sequence[Token]) -> list[CallSite]:
    """Find calls whose callee is an unqualified identifier.

    A call is an identifier followed on the same line by ``(`` or a trailing
    lambda ``{``, optionally with type arguments in between. Qualified calls
    such as ``a.B()`` and declaration names are not calls.
    """
    declared = {(decl.line, decl.column) for decl in function_declarations(tokens)}
    calls: list[CallSite] = []
    n = len(tokens)
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.IDENTIFIER or token.text in _NON_CALL_WORDS:
            continue
        if (token.line, token.column) in declared:
            continue
        if index > 0 and _blocks_call(tokens[index - 1]):
            continue
        after = index + 1
        if after < n and _is_punct(tokens[after], "<") and not tokens[after].newline_before:
            skipped = _skip_type_arguments(tokens, after)
            if skipped is None:
                continue
            after = skipped
        if after >= n:
            continue
        following = tokens[after]
        if (
            following.kind is TokenKind.PUNCT
            and following.text in ("(", "{")
            and not following.newline_before
        ):
            calls.append(CallSite(name=token.text, line=token.line, column=token.column))
    return calls