"""Render classified operations as Rails migration source."""

from __future__ import annotations

import logging

from schemabridge.migrations.models import (
    AddColumn,
    CreateIndex,
    CreateTable,
    DropColumn,
    DropIndex,
    DropTable,
    Operation,
    RenderedLine,
    ruby_symbol,
)
from schemabridge.migrations.typemap import DEFAULT_TYPE_MAPPING, TypeMapping
from schemabridge.types import OperationKind

__all__ = ["OperationRenderer", "verbatim_block"]

logger = logging.getLogger(__name__)

HEREDOC_TAG = "SQL"


def _ruby_string(value: str) -> str:
    """Quote a value as a single-quoted Ruby string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _heredoc_tag(lines: list[str]) -> str:
    """Pick a delimiter that no line of the SQL would close early."""
    tag = HEREDOC_TAG
    while any(line.strip() == tag for line in lines):
        tag = f"{tag}_"
    return tag


def verbatim_block(sql: str) -> tuple[str, ...]:
    """Wrap raw SQL in an ``execute`` heredoc.

    The heredoc delimiter is quoted so Ruby performs no interpolation or
    escape processing. Every line is indented; ``<<~`` strips the common
    indentation again, so a single-line statement reaches the database byte
    for byte and multi-line SQL keeps its relative indentation.
    """
    lines = sql.splitlines() or [""]
    tag = _heredoc_tag(lines)
    return (
        f"execute <<~'{tag}'",
        *(f"  {line}" if line.strip() else "" for line in lines),
        tag,
    )


class OperationRenderer:
    """Render one operation into migration source lines."""

    def __init__(self, type_mapping: TypeMapping = DEFAULT_TYPE_MAPPING):
        self.type_mapping = type_mapping

    def render(self, operation: Operation) -> RenderedLine:
        renderers = {
            OperationKind.CREATE_TABLE: self._render_create_table,
            OperationKind.DROP_TABLE: self._render_drop_table,
            OperationKind.ADD_COLUMN: self._render_add_column,
            OperationKind.DROP_COLUMN: self._render_drop_column,
            OperationKind.CREATE_INDEX: self._render_create_index,
            OperationKind.DROP_INDEX: self._render_drop_index,
        }
        renderer = renderers.get(operation.kind)
        if renderer is None:
            return self._render_verbatim(operation)
        return renderer(operation)

    def render_all(self, operations: list[Operation]) -> list[RenderedLine]:
        return [self.render(op) for op in operations]

    def _render_verbatim(self, operation: Operation) -> RenderedLine:
        return RenderedLine(
            operation=operation,
            lines=verbatim_block(operation.statement.text),
            verbatim=True,
        )

    def _render_create_table(self, op: CreateTable) -> RenderedLine:
        """Table block with an empty body; columns are not part of the statement shape."""
        return RenderedLine(
            operation=op,
            lines=(f"create_table {ruby_symbol(op.table)} do |t|", "end"),
        )

    def _render_drop_table(self, op: DropTable) -> RenderedLine:
        return RenderedLine(operation=op, lines=(f"drop_table {ruby_symbol(op.table)}",))

    def _render_add_column(self, op: AddColumn) -> RenderedLine:
        target = self.type_mapping.resolve(op.source_type)
        if target is None:
            logger.warning(
                "Statement %d: type '%s' has no mapping that keeps its parameters; "
                "it will be executed verbatim",
                op.statement.position,
                op.source_type,
            )
            return self._render_verbatim(op)

        table, column = ruby_symbol(op.table), ruby_symbol(op.column)
        line = f"add_column {table}, {column}, {target.render()}"
        if op.nullable is False:
            line += ", null: false"
        return RenderedLine(operation=op, lines=(line,))

    def _render_drop_column(self, op: DropColumn) -> RenderedLine:
        table, column = ruby_symbol(op.table), ruby_symbol(op.column)
        return RenderedLine(operation=op, lines=(f"remove_column {table}, {column}",))

    def _render_create_index(self, op: CreateIndex) -> RenderedLine:
        table, column = ruby_symbol(op.table), ruby_symbol(op.column)
        line = f"add_index {table}, {column}, name: {_ruby_string(op.name)}"
        if op.unique:
            line += ", unique: true"
        return RenderedLine(operation=op, lines=(line,))

    def _render_drop_index(self, op: DropIndex) -> RenderedLine:
        if op.table:
            table = ruby_symbol(op.table)
            line = f"remove_index {table}, name: {_ruby_string(op.name)}"
        else:
            line = f"remove_index name: {_ruby_string(op.name)}"
        return RenderedLine(operation=op, lines=(line,))
