# src/flowbench/engine/parser.py
"""Best-effort extraction of table definitions from pipeline source code.

Two dialects are understood:

Python (declarative pipelines API):
    @dp.table
    def orders_clean():
        return spark.readStream.table("orders_raw").where(...)

SQL:
    CREATE OR REFRESH STREAMING TABLE orders_clean AS
    SELECT * FROM STREAM(LIVE.orders_raw)

Upstream references are collected per definition, from the text between
this definition and the next one. Qualified names (catalog.schema.table)
are external tables, not part of the pipeline, and are not tracked.

The parser is used on half-typed editor buffers, so it never raises: a
source it cannot make sense of contributes no tables and is logged.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from flowbench.contracts import ParsedTable, ResolvedSource, SourceLanguage, TableKind
from flowbench.core.logging import get_logger

logger = get_logger(__name__)

# Name fragments that mark a generic table as streaming
_STREAMING_NAME_HINTS = ("stream", "raw", "cleaned")

_PY_COMMENT_LINE = re.compile(r"^[ \t]*#[^\n]*$", re.MULTILINE)
_PY_DECORATOR = re.compile(
    r"^[ \t]*@(?:dp|dlt)\.(?P<decorator>table|materialized_view|streaming_table|temporary_view|view)\b",
    re.MULTILINE,
)
_PY_DEF = re.compile(r"\b(?:async\s+)?def\s+(?P<name>\w+)\s*\(")
_PY_NAME_ARG = re.compile(r"\bname\s*=\s*(?P<quote>[\"'])(?P<name>[^\"']+)(?P=quote)")
_PY_READ = re.compile(
    r"(?:spark\.(?P<spark_mode>readStream|read)\.table|spark\.table|(?:dlt|dp)\.(?P<api_mode>read_stream|read))"
    r"\(\s*(?P<quote>[\"'])(?P<name>[^\"']+)(?P=quote)"
)

_PY_DECORATOR_KINDS: dict[str, TableKind | None] = {
    "table": None,  # inferred from the body
    "streaming_table": TableKind.STREAMING_TABLE,
    "materialized_view": TableKind.MATERIALIZED_VIEW,
    "view": TableKind.VIEW,
    "temporary_view": TableKind.VIEW,
}

_SQL_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_SQL_LINE_COMMENT = re.compile(r"--[^\n]*")
_SQL_IDENTIFIER = r"(?:`[^`]+`|[^\W\d]\w*)(?:\.(?:`[^`]+`|[^\W\d]\w*))*"
_SQL_CREATE = re.compile(
    r"\bCREATE\s+(?:OR\s+(?:REFRESH|REPLACE)\s+)?"
    r"(?P<temporary>TEMPORARY\s+)?(?P<streaming>STREAMING\s+)?(?:LIVE\s+)?"
    r"(?P<object>MATERIALIZED\s+VIEW|TABLE|VIEW)\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?"
    rf"(?P<name>{_SQL_IDENTIFIER})",
    re.IGNORECASE,
)
_SQL_REFERENCE = re.compile(
    r"\b(?:FROM|JOIN)\s+(?P<stream>STREAM\s*\(\s*)?"
    rf"(?P<name>{_SQL_IDENTIFIER})(?![\w`.]|\s*\()",
    re.IGNORECASE,
)
# Further items of a comma-separated FROM list, each with an optional alias
_SQL_LIST_ITEM = re.compile(
    r"\s*(?:(?:AS\s+)?\w+\s*)?,\s*(?P<stream>STREAM\s*\(\s*)?"
    rf"(?P<name>{_SQL_IDENTIFIER})(?![\w`.]|\s*\()",
    re.IGNORECASE,
)
_SQL_STREAM_CLOSE = re.compile(r"\s*\)")
_SQL_QUERY_START = re.compile(r"\s*(?:SELECT|WITH)\b", re.IGNORECASE)
_SQL_CTE = re.compile(
    r"(?:\bWITH\s+(?:RECURSIVE\s+)?|,\s*)(?P<name>\w+)\s+AS\s*\(",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class _Definition:
    """A table definition before file/origin bookkeeping."""

    name: str
    kind: TableKind
    upstream_names: tuple[str, ...]


def parse_tables(sources: Iterable[ResolvedSource]) -> list[ParsedTable]:
    """Extract table definitions from resolved sources.

    Table names are unique in the result: the first definition of a name
    wins and later duplicates are skipped with a warning.

    Args:
        sources: Resolved sources, in resolution order

    Returns:
        Parsed tables in source order, then definition order. Empty when
        no source declares a table.
    """
    tables: list[ParsedTable] = []
    seen: dict[str, str] = {}

    for source in sources:
        try:
            definitions = list(_parse_source(source))
        except Exception as e:
            # Partial buffers are normal while typing; skip the file, keep the run
            logger.warning(
                "Could not parse source",
                file_id=source.file_id,
                language=source.language.value,
                error=str(e),
            )
            continue

        for definition in definitions:
            if definition.name in seen:
                logger.warning(
                    "Duplicate table definition skipped",
                    table=definition.name,
                    file_id=source.file_id,
                    first_defined_in=seen[definition.name],
                )
                continue
            seen[definition.name] = source.file_id
            tables.append(
                ParsedTable(
                    name=definition.name,
                    kind=definition.kind,
                    upstream_names=definition.upstream_names,
                    file_id=source.file_id,
                    origin=source.origin,
                    language=source.language,
                )
            )

    return tables


def _parse_source(source: ResolvedSource) -> Iterator[_Definition]:
    if source.language is SourceLanguage.PYTHON:
        return _parse_python(source.content)
    if source.language is SourceLanguage.SQL:
        return _parse_sql(source.content)
    return iter(())


def _parse_python(content: str) -> Iterator[_Definition]:
    text = _PY_COMMENT_LINE.sub("", content)
    decorators = list(_PY_DECORATOR.finditer(text))

    for index, match in enumerate(decorators):
        segment_end = decorators[index + 1].start() if index + 1 < len(decorators) else len(text)
        position = match.end()

        arguments = ""
        call = _call_arguments(text, position, segment_end)
        if call is not None:
            arguments, position = call

        function = _PY_DEF.search(text, position, segment_end)
        if function is None:
            # Decorator typed but function not yet written
            continue

        name_arg = _PY_NAME_ARG.search(arguments)
        name = name_arg.group("name") if name_arg else function.group("name")
        if "." in name:
            name = name.rsplit(".", 1)[-1]

        body = text[function.end():segment_end]
        upstream: list[str] = []
        reads_stream = False
        for read in _PY_READ.finditer(body):
            if read.group("spark_mode") == "readStream" or read.group("api_mode") == "read_stream":
                reads_stream = True
            upstream.append(read.group("name"))

        declared = _PY_DECORATOR_KINDS[match.group("decorator")]
        kind = declared or _infer_table_kind(name, reads_stream)
        yield _Definition(name=name, kind=kind, upstream_names=_internal_upstreams(name, upstream))


def _call_arguments(text: str, start: int, end: int) -> tuple[str, int] | None:
    """Return (arguments, index after ")") for a call starting at `start`.

    Whitespace before "(" is allowed. Returns None when there is no call or
    the parentheses are unbalanced within [start, end).
    """
    position = start
    while position < end and text[position] in " \t":
        position += 1
    if position >= end or text[position] != "(":
        return None

    depth = 0
    quote: str | None = None
    for cursor in range(position, end):
        char = text[cursor]
        if quote is not None:
            if char == quote and text[cursor - 1] != "\\":
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return text[position + 1:cursor], cursor + 1
    return None


def _parse_sql(content: str) -> Iterator[_Definition]:
    text = _SQL_LINE_COMMENT.sub("", _SQL_BLOCK_COMMENT.sub(" ", content))
    statements = list(_SQL_CREATE.finditer(text))

    for index, match in enumerate(statements):
        segment_end = statements[index + 1].start() if index + 1 < len(statements) else len(text)
        body = text[match.end():segment_end]
        # A ";" ends the statement; anything after it belongs to no definition
        body = body.split(";", 1)[0]

        name = _sql_name_parts(match.group("name"))[-1]
        ctes = {cte.group("name").lower() for cte in _SQL_CTE.finditer(body)}

        upstream: list[str] = []
        reads_stream = False
        for reference in _sql_table_references(body):
            parts = _sql_name_parts(reference.group("name"))
            if len(parts) == 2 and parts[0].lower() == "live":
                parts = parts[1:]
            referenced = ".".join(parts)
            if referenced.lower() in ctes:
                continue
            if reference.group("stream"):
                reads_stream = True
            upstream.append(referenced)

        object_type = " ".join(match.group("object").upper().split())
        kind = _sql_kind(
            object_type,
            name=name,
            temporary=bool(match.group("temporary")),
            streaming=bool(match.group("streaming")),
            reads_stream=reads_stream,
        )
        yield _Definition(name=name, kind=kind, upstream_names=_internal_upstreams(name, upstream))


def _sql_table_references(body: str) -> Iterator[re.Match[str]]:
    """Yield FROM/JOIN references that read a table.

    A FROM counts only at statement level or directly inside a parenthesized
    query. Inside any other parentheses it is function syntax, as in
    EXTRACT(YEAR FROM ts) or TRIM(BOTH ' ' FROM name), and is skipped.
    """
    opens: list[int] = []
    quoted = False
    cursor = 0
    for reference in _SQL_REFERENCE.finditer(body):
        for index in range(cursor, reference.start()):
            char = body[index]
            if char == "'":
                quoted = not quoted
            elif quoted:
                continue
            elif char == "(":
                opens.append(index)
            elif char == ")" and opens:
                opens.pop()
        cursor = reference.start()
        if quoted:
            continue
        if opens and not _SQL_QUERY_START.match(body, opens[-1] + 1):
            continue
        yield from _sql_table_list(body, reference)


def _sql_table_list(body: str, reference: re.Match[str]) -> Iterator[re.Match[str]]:
    """Yield a reference followed by the rest of its comma-separated FROM list."""
    item: re.Match[str] | None = reference
    while item is not None:
        yield item
        position = item.end()
        if item.group("stream"):
            close = _SQL_STREAM_CLOSE.match(body, position)
            if close is None:
                return
            position = close.end()
        item = _SQL_LIST_ITEM.match(body, position)


def _sql_name_parts(identifier: str) -> list[str]:
    return [part.strip("`") for part in re.findall(r"`[^`]+`|\w+", identifier)]


def _sql_kind(
    object_type: str,
    *,
    name: str,
    temporary: bool,
    streaming: bool,
    reads_stream: bool,
) -> TableKind:
    if streaming:
        return TableKind.STREAMING_TABLE
    if object_type == "MATERIALIZED VIEW":
        return TableKind.MATERIALIZED_VIEW
    if object_type == "VIEW":
        return TableKind.VIEW if temporary else TableKind.PERSISTED_VIEW
    return _infer_table_kind(name, reads_stream)


def _infer_table_kind(name: str, reads_stream: bool) -> TableKind:
    lowered = name.lower()
    if reads_stream or any(hint in lowered for hint in _STREAMING_NAME_HINTS):
        return TableKind.STREAMING_TABLE
    return TableKind.MATERIALIZED_VIEW


def _internal_upstreams(name: str, references: Iterable[str]) -> tuple[str, ...]:
    """Drop external (qualified) names and self references, keep first-seen order."""
    upstream: list[str] = []
    for reference in references:
        if "." in reference or reference == name or reference in upstream:
            continue
        upstream.append(reference)
    return tuple(upstream)
