"""Query file parsing for pgquerygen.

A query file holds any number of statements, each preceded by a comment
block whose last line names it and declares its result kind:

    -- Finds authors by first name.
    -- name: FindAuthors :many
    SELECT * FROM author WHERE first_name = pgq.arg('FirstName');

pgq.arg('Name') markers become positional $n placeholders, numbered in
order of first appearance. Semicolons and markers inside string literals,
quoted identifiers, dollar-quoted bodies and comments are left alone.
"""

from __future__ import annotations

import re
from pathlib import Path

from pgquerygen.core.exceptions import InputError
from pgquerygen.infer.query import ResultKind, SourceQuery

_ARG_PATTERN = re.compile(r"pgq\.arg\(\s*'([^']+)'\s*\)")
_NAME_PATTERN = re.compile(r"^--\s*name:\s*(?P<name>\S+)(?:\s+(?P<kind>\S+))?\s*$")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")
_PLAIN_RUN = re.compile(r"[^;'\"$/\-p]+")
_KIND_CHOICES = ", ".join(k.value for k in ResultKind)


class _Scanner:
    """Single pass over a query file, tracking line numbers for errors."""

    def __init__(self, text: str, source: str) -> None:
        self.text = text
        self.source = source
        self.pos = 0
        self.line = 1

    def error(self, message: str, line: int | None = None) -> InputError:
        return InputError(f"{self.source}:{line or self.line}: {message}")

    def advance_to(self, end: int) -> None:
        self.line += self.text.count("\n", self.pos, end)
        self.pos = end

    def parse(self) -> list[SourceQuery]:
        queries: list[SourceQuery] = []
        seen: dict[str, int] = {}
        comments: list[str] = []
        text = self.text

        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                end = self.pos
                while end < len(text) and text[end].isspace():
                    end += 1
                # A blank line detaches a comment block from the next query.
                if text.count("\n", self.pos, end) > 1:
                    comments = []
                self.advance_to(end)
            elif text.startswith("--", self.pos):
                end = self._line_comment_end(self.pos)
                comments.append(text[self.pos : end])
                self.advance_to(end)
            elif text.startswith("/*", self.pos):
                self.advance_to(self._block_comment_end(self.pos))
            elif ch == ";":
                comments = []
                self.advance_to(self.pos + 1)
            else:
                query = self._statement(comments, seen)
                queries.append(query)
                comments = []
        return queries

    def _statement(self, comments: list[str], seen: dict[str, int]) -> SourceQuery:
        start_line = self.line
        name, kind = self._annotation(comments, start_line)
        if name in seen:
            msg = f"duplicate query name {name} (first declared on line {seen[name]})"
            raise self.error(msg, start_line)
        seen[name] = start_line

        text = self.text
        pieces: list[str] = []
        params: dict[str, int] = {}
        while self.pos < len(text):
            plain = _PLAIN_RUN.match(text, self.pos)
            if plain:
                pieces.append(plain.group())
                self.advance_to(plain.end())
                continue
            arg = _ARG_PATTERN.match(text, self.pos)
            if arg:
                index = params.setdefault(arg.group(1), len(params) + 1)
                pieces.append(f"${index}")
                self.advance_to(arg.end())
                continue
            if text[self.pos] == ";":
                pieces.append(";")
                self.advance_to(self.pos + 1)
                break
            end = self._token_end(self.pos)
            pieces.append(text[self.pos : end])
            self.advance_to(end)

        sql = "".join(pieces).strip()
        if not sql.rstrip(";").strip():
            raise self.error(f"query {name} has no SQL", start_line)
        return SourceQuery(
            name=name,
            prepared_sql=sql,
            param_names=tuple(params),
            result_kind=kind,
            doc=tuple(comments),
        )

    def _annotation(self, comments: list[str], line: int) -> tuple[str, ResultKind]:
        match = _NAME_PATTERN.match(comments[-1].strip()) if comments else None
        if match is None:
            msg = "query is missing a '-- name: <Name> <:kind>' annotation"
            raise self.error(msg, line)

        name = match.group("name")
        if not _IDENTIFIER.fullmatch(name):
            raise self.error(f"invalid query name {name!r}", line)

        kind_text = match.group("kind")
        if kind_text is None:
            msg = f"query {name} is missing a result kind; expected one of {_KIND_CHOICES}"
            raise self.error(msg, line)
        try:
            kind = ResultKind(kind_text)
        except ValueError:
            msg = (
                f"query {name} has unknown result kind {kind_text!r}; "
                f"expected one of {_KIND_CHOICES}"
            )
            raise self.error(msg, line) from None
        return name, kind

    def _token_end(self, start: int) -> int:
        text = self.text
        if text.startswith("--", start):
            return self._line_comment_end(start)
        if text.startswith("/*", start):
            return self._block_comment_end(start)
        ch = text[start]
        if ch == "'":
            return self._quoted_end(start, "'", backslash=self._is_escape_string(start))
        if ch == '"':
            return self._quoted_end(start, '"', backslash=False)
        if ch == "$":
            tag = _DOLLAR_TAG.match(text, start)
            if tag:
                close = text.find(tag.group(), tag.end())
                if close == -1:
                    raise self.error("unterminated dollar-quoted string")
                return close + len(tag.group())
        return start + 1

    def _line_comment_end(self, start: int) -> int:
        end = self.text.find("\n", start)
        return len(self.text) if end == -1 else end

    def _block_comment_end(self, start: int) -> int:
        # PostgreSQL block comments nest.
        depth = 0
        i = start
        while i < len(self.text):
            if self.text.startswith("/*", i):
                depth += 1
                i += 2
            elif self.text.startswith("*/", i):
                depth -= 1
                i += 2
                if depth == 0:
                    return i
            else:
                i += 1
        raise self.error("unterminated block comment")

    def _is_escape_string(self, quote: int) -> bool:
        if quote == 0 or self.text[quote - 1] not in "eE":
            return False
        return quote == 1 or not (
            self.text[quote - 2].isalnum() or self.text[quote - 2] == "_"
        )

    def _quoted_end(self, start: int, quote: str, *, backslash: bool) -> int:
        i = start + 1
        while i < len(self.text):
            ch = self.text[i]
            if backslash and ch == "\\":
                i += 2
            elif ch == quote:
                if self.text.startswith(quote * 2, i):
                    i += 2
                else:
                    return i + 1
            else:
                i += 1
        raise self.error("unterminated quoted string")


def parse_query_text(text: str, source: str = "<string>") -> list[SourceQuery]:
    """Parse annotated queries from text. Raises InputError on bad input."""
    return _Scanner(text, source).parse()


def parse_query_file(path: Path) -> list[SourceQuery]:
    """Parse every annotated query in a .sql file."""
    if not path.is_file():
        raise InputError(f"Query file not found: {path}")
    return parse_query_text(path.read_text(), source=str(path))
