"""Classify raw DDL statements into typed migration operations.

Patterns are tried in the order of ``PATTERNS`` and the first match wins.
A statement no pattern matches becomes ``Unclassified`` and is later
executed verbatim, so classification never fails and never drops a
statement.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable

from schemabridge.migrations.models import (
    AddColumn,
    CreateIndex,
    CreateTable,
    DropColumn,
    DropIndex,
    DropTable,
    Operation,
    RawStatement,
    TypeSpec,
    Unclassified,
)
from schemabridge.types import OperationKind

__all__ = ["PATTERNS", "classify", "classify_all", "normalize_identifier"]

logger = logging.getLogger(__name__)

_QUOTE_CHARS = "\"`"
_IDENT = r"[\"`]?(\w+)[\"`]?"
_END = r"\s*;?\s*$"

Builder = Callable[[RawStatement, "re.Match[str]"], Operation]


def normalize_identifier(name: str) -> str:
    """Strip quoting characters and lower-case an identifier."""
    return name.strip(_QUOTE_CHARS).lower()


def _create_table(statement: RawStatement, match: re.Match[str]) -> Operation:
    return CreateTable(statement=statement, table=normalize_identifier(match[1]))


def _drop_table(statement: RawStatement, match: re.Match[str]) -> Operation:
    return DropTable(statement=statement, table=normalize_identifier(match[1]))


def _add_column(statement: RawStatement, match: re.Match[str]) -> Operation:
    table, column, type_token, null_clause = match.groups()
    nullable = None
    if null_clause is not None:
        nullable = null_clause.split()[0].upper() != "NOT"
    return AddColumn(
        statement=statement,
        table=normalize_identifier(table),
        column=normalize_identifier(column),
        source_type=TypeSpec.parse(type_token),
        nullable=nullable,
    )


def _drop_column(statement: RawStatement, match: re.Match[str]) -> Operation:
    return DropColumn(
        statement=statement,
        table=normalize_identifier(match[1]),
        column=normalize_identifier(match[2]),
    )


def _create_index(unique: bool) -> Builder:
    def build(statement: RawStatement, match: re.Match[str]) -> Operation:
        return CreateIndex(
            statement=statement,
            name=match[1],
            table=normalize_identifier(match[2]),
            column=normalize_identifier(match[3]),
            unique=unique,
        )

    return build


def _drop_index(statement: RawStatement, match: re.Match[str]) -> Operation:
    table = match[2]
    return DropIndex(
        statement=statement,
        name=match[1],
        table=normalize_identifier(table) if table else None,
    )


def _pattern(source: str) -> re.Pattern[str]:
    return re.compile(source, re.IGNORECASE)


# Order matters: CREATE UNIQUE INDEX must be tried before CREATE INDEX.
PATTERNS: list[tuple[OperationKind, re.Pattern[str], Builder]] = [
    (
        OperationKind.CREATE_TABLE,
        _pattern(rf"^CREATE\s+TABLE\s+{_IDENT}\s*\("),
        _create_table,
    ),
    (
        OperationKind.DROP_TABLE,
        _pattern(rf"^DROP\s+TABLE\s+{_IDENT}{_END}"),
        _drop_table,
    ),
    (
        OperationKind.ADD_COLUMN,
        _pattern(
            rf"^ALTER\s+TABLE\s+{_IDENT}\s+ADD\s+COLUMN\s+{_IDENT}\s+"
            rf"(\w+(?:\s*\([^)]*\))?)(?:\s+(NOT\s+NULL|NULL))?{_END}"
        ),
        _add_column,
    ),
    (
        OperationKind.DROP_COLUMN,
        _pattern(rf"^ALTER\s+TABLE\s+{_IDENT}\s+DROP\s+COLUMN\s+{_IDENT}{_END}"),
        _drop_column,
    ),
    (
        OperationKind.CREATE_INDEX,
        _pattern(
            rf"^CREATE\s+UNIQUE\s+INDEX\s+{_IDENT}\s+ON\s+{_IDENT}\s*\(\s*{_IDENT}\s*\){_END}"
        ),
        _create_index(unique=True),
    ),
    (
        OperationKind.CREATE_INDEX,
        _pattern(
            rf"^CREATE\s+INDEX\s+{_IDENT}\s+ON\s+{_IDENT}\s*\(\s*{_IDENT}\s*\){_END}"
        ),
        _create_index(unique=False),
    ),
    (
        OperationKind.DROP_INDEX,
        _pattern(rf"^DROP\s+INDEX\s+{_IDENT}(?:\s+ON\s+{_IDENT})?{_END}"),
        _drop_index,
    ),
]


def classify(statement: RawStatement) -> Operation:
    """Map one statement to exactly one operation."""
    text = statement.text.strip()
    for kind, pattern, build in PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        try:
            return build(statement, match)
        except ValueError as exc:
            logger.warning(
                "Statement %d matched %s but could not be parsed (%s); "
                "it will be executed verbatim",
                statement.position,
                kind.value,
                exc,
            )
            return Unclassified(statement=statement)

    logger.info(
        "Statement %d is not a recognized shape; it will be executed verbatim",
        statement.position,
    )
    return Unclassified(statement=statement)


def classify_all(statements: Iterable[RawStatement]) -> list[Operation]:
    """Classify every statement, preserving order."""
    return [classify(statement) for statement in statements]
