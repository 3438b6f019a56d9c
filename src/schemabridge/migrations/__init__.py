"""Diff-to-migration compiler: extract, classify, render, assemble, write."""

from schemabridge.migrations.assembler import (
    DEFAULT_MIGRATION_NAME,
    assemble,
    class_name_for,
    slugify,
)
from schemabridge.migrations.classifier import PATTERNS, classify, classify_all
from schemabridge.migrations.extractor import extract_statements, fetch_statements
from schemabridge.migrations.models import (
    AddColumn,
    CreateIndex,
    CreateTable,
    DropColumn,
    DropIndex,
    DropTable,
    MigrationArtifact,
    Operation,
    RawStatement,
    RenderedLine,
    TargetType,
    TypeSpec,
    Unclassified,
    WrittenMigration,
)
from schemabridge.migrations.renderer import OperationRenderer
from schemabridge.migrations.typemap import (
    DEFAULT_TYPE_MAPPING,
    TypeMapping,
    TypeRule,
    load_type_mapping,
)
from schemabridge.migrations.writer import MigrationWriter

__all__ = [
    "DEFAULT_MIGRATION_NAME",
    "assemble",
    "class_name_for",
    "slugify",
    "PATTERNS",
    "classify",
    "classify_all",
    "extract_statements",
    "fetch_statements",
    "AddColumn",
    "CreateIndex",
    "CreateTable",
    "DropColumn",
    "DropIndex",
    "DropTable",
    "MigrationArtifact",
    "Operation",
    "RawStatement",
    "RenderedLine",
    "TargetType",
    "TypeSpec",
    "Unclassified",
    "WrittenMigration",
    "OperationRenderer",
    "DEFAULT_TYPE_MAPPING",
    "TypeMapping",
    "TypeRule",
    "load_type_mapping",
    "MigrationWriter",
]
