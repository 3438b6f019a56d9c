"""Records flowing through the diff-to-migration pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional, Union

from schemabridge.types import ColumnName, IndexName, OperationKind, TableName

__all__ = [
    "RawStatement",
    "TypeSpec",
    "TargetType",
    "CreateTable",
    "DropTable",
    "AddColumn",
    "DropColumn",
    "CreateIndex",
    "DropIndex",
    "Unclassified",
    "Operation",
    "RenderedLine",
    "MigrationArtifact",
    "WrittenMigration",
    "ruby_symbol",
]

_TYPE_TOKEN_PATTERN = re.compile(r"^(\w+)\s*(?:\((.*)\))?$", re.DOTALL)
_BARE_SYMBOL_PATTERN = re.compile(r"^[A-Za-z_]\w*$")


def ruby_symbol(name: str) -> str:
    """Ruby symbol literal for ``name``; quoted when a bare symbol would not parse.

    "users" -> ":users", "2fa_codes" -> ':"2fa_codes"'
    """
    if _BARE_SYMBOL_PATTERN.match(name):
        return f":{name}"
    escaped = name.replace("\\", "\\\\").replace('"', '\\"').replace("#", "\\#")
    return f':"{escaped}"'


@dataclass(frozen=True)
class RawStatement:
    """A DDL statement as Atlas printed it, with its 1-based plan position."""

    position: int
    text: str

    def __post_init__(self):
        if self.position < 1:
            raise ValueError(f"position must be >= 1, got {self.position}")


@dataclass(frozen=True)
class TypeSpec:
    """Source-dialect column type with its numeric parameters."""

    base_type: str
    params: tuple[int, ...] = ()

    @classmethod
    def parse(cls, token: str) -> TypeSpec:
        """Parse a type token such as ``varchar(255)`` or ``DECIMAL(10, 2)``.

        Raises:
            ValueError: If the token is not a type name or a parameter is
                not an integer.
        """
        match = _TYPE_TOKEN_PATTERN.match(token.strip())
        if not match:
            raise ValueError(f"Invalid type token: {token!r}")

        base_type, raw_params = match.groups()
        if raw_params is None:
            return cls(base_type=base_type)

        params = []
        for part in raw_params.split(","):
            part = part.strip()
            if not part.isdigit():
                raise ValueError(
                    f"Invalid parameter {part!r} in type token {token!r}"
                )
            params.append(int(part))
        return cls(base_type=base_type, params=tuple(params))

    def __str__(self) -> str:
        if not self.params:
            return self.base_type
        return f"{self.base_type}({','.join(str(p) for p in self.params)})"


@dataclass(frozen=True)
class TargetType:
    """Rails migration column type plus the keyword options it carries."""

    name: str
    options: tuple[tuple[str, int], ...] = ()

    def render(self) -> str:
        """Render as migration arguments, e.g. ``:string, limit: 255``."""
        parts = [ruby_symbol(self.name)]
        parts.extend(f"{key}: {value}" for key, value in self.options)
        return ", ".join(parts)


@dataclass(frozen=True)
class CreateTable:
    kind: ClassVar[OperationKind] = OperationKind.CREATE_TABLE

    statement: RawStatement
    table: TableName


@dataclass(frozen=True)
class DropTable:
    kind: ClassVar[OperationKind] = OperationKind.DROP_TABLE

    statement: RawStatement
    table: TableName


@dataclass(frozen=True)
class AddColumn:
    """ALTER TABLE ... ADD COLUMN.

    ``nullable`` is None when the statement did not say either way.
    """

    kind: ClassVar[OperationKind] = OperationKind.ADD_COLUMN

    statement: RawStatement
    table: TableName
    column: ColumnName
    source_type: TypeSpec
    nullable: Optional[bool] = None


@dataclass(frozen=True)
class DropColumn:
    kind: ClassVar[OperationKind] = OperationKind.DROP_COLUMN

    statement: RawStatement
    table: TableName
    column: ColumnName


@dataclass(frozen=True)
class CreateIndex:
    kind: ClassVar[OperationKind] = OperationKind.CREATE_INDEX

    statement: RawStatement
    name: IndexName
    table: TableName
    column: ColumnName
    unique: bool = False


@dataclass(frozen=True)
class DropIndex:
    """DROP INDEX; ``table`` is set only for the ``DROP INDEX x ON t`` form."""

    kind: ClassVar[OperationKind] = OperationKind.DROP_INDEX

    statement: RawStatement
    name: IndexName
    table: Optional[TableName] = None


@dataclass(frozen=True)
class Unclassified:
    """A statement no pattern matched. Executed verbatim by the migration."""

    kind: ClassVar[OperationKind] = OperationKind.UNCLASSIFIED

    statement: RawStatement


Operation = Union[
    CreateTable,
    DropTable,
    AddColumn,
    DropColumn,
    CreateIndex,
    DropIndex,
    Unclassified,
]


@dataclass(frozen=True)
class RenderedLine:
    """Migration source for one operation.

    ``verbatim`` is True when the raw statement is passed through to
    ``execute`` instead of being expressed with a migration helper.
    """

    operation: Operation
    lines: tuple[str, ...]
    verbatim: bool = False


@dataclass(frozen=True)
class MigrationArtifact:
    """An assembled migration, not yet bound to a timestamp."""

    name: str
    slug: str
    class_name: str
    framework_version: str
    body: tuple[RenderedLine, ...] = field(default_factory=tuple)
    content: str = ""

    @property
    def fallback_count(self) -> int:
        return sum(1 for line in self.body if line.verbatim)


@dataclass(frozen=True)
class WrittenMigration:
    """A migration artifact persisted under its final identity."""

    version: str
    path: Path
    artifact: MigrationArtifact

    @property
    def filename(self) -> str:
        return self.path.name
