"""Bridge between Atlas schema plans and Rails migrations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from schemabridge.atlas.client import AtlasClient, CommandResult
from schemabridge.atlas.utils import run_schema_dump
from schemabridge.config import Config
from schemabridge.exceptions import DiffUnavailableError, SchemaApplyError
from schemabridge.migrations.assembler import DEFAULT_MIGRATION_NAME, assemble
from schemabridge.migrations.classifier import classify_all
from schemabridge.migrations.extractor import fetch_statements
from schemabridge.migrations.models import (
    MigrationArtifact,
    Operation,
    RawStatement,
    RenderedLine,
    WrittenMigration,
)
from schemabridge.migrations.renderer import OperationRenderer
from schemabridge.migrations.typemap import (
    DEFAULT_TYPE_MAPPING,
    TypeMapping,
    load_type_mapping,
)
from schemabridge.migrations.writer import MigrationWriter

__all__ = ["CompileResult", "GenerateResult", "MigrationBridge"]

logger = logging.getLogger(__name__)

DiffSource = Callable[[str], CommandResult]


@dataclass(frozen=True)
class CompileResult:
    operations: list[Operation] = field(default_factory=list)
    rendered: list[RenderedLine] = field(default_factory=list)
    artifact: Optional[MigrationArtifact] = None

    @property
    def fallback_count(self) -> int:
        return sum(1 for line in self.rendered if line.verbatim)


@dataclass(frozen=True)
class GenerateResult:
    """Outcome of one generate run. ``migration`` is None when nothing changed."""

    statements: list[RawStatement] = field(default_factory=list)
    compiled: CompileResult = field(default_factory=CompileResult)
    migration: Optional[WrittenMigration] = None

    @property
    def has_changes(self) -> bool:
        return bool(self.statements)

    @property
    def fallback_count(self) -> int:
        return self.compiled.fallback_count


class MigrationBridge:
    """
    Turns the Atlas dry-run plan into a Rails migration file.

    The diff source is injected so the pipeline can run against canned
    output; by default it is ``AtlasClient.dry_run``. Each ``generate`` call
    invokes it once and writes at most one migration.
    """

    def __init__(
        self,
        config: Config,
        *,
        client: Optional[AtlasClient] = None,
        diff_source: Optional[DiffSource] = None,
        type_mapping: Optional[TypeMapping] = None,
        writer: Optional[MigrationWriter] = None,
    ) -> None:
        self.config = config
        self._client = client or AtlasClient(config.atlas_bin, cwd=config.root_path)
        self._diff_source = diff_source or self._client.dry_run

        if type_mapping is None:
            type_mapping = (
                load_type_mapping(Path(config.type_map_path))
                if config.type_map_path
                else DEFAULT_TYPE_MAPPING
            )
        self._renderer = OperationRenderer(type_mapping)
        self._writer = writer or MigrationWriter(config.migrations_path)

    def plan(self) -> list[RawStatement]:
        """Fetch the statements Atlas would apply.

        Raises:
            DiffUnavailableError: If the Atlas dry run fails.
        """
        logger.info("Generating migration plan for env '%s'...", self.config.atlas_env)
        statements = fetch_statements(self._diff_source, self.config.atlas_env)
        logger.info("Found %d change(s)", len(statements))
        return statements

    def compile(
        self, statements: list[RawStatement], name: Optional[str] = None
    ) -> CompileResult:
        """Pure translation of statements into a migration artifact."""
        operations = classify_all(statements)
        rendered = self._renderer.render_all(operations)
        artifact = assemble(
            rendered,
            name=name or DEFAULT_MIGRATION_NAME,
            framework_version=self.config.rails_version,
        )
        return CompileResult(operations=operations, rendered=rendered, artifact=artifact)

    def generate(self, name: Optional[str] = None) -> GenerateResult:
        """Plan, compile and write a migration.

        Nothing is written when the plan is empty.
        """
        statements = self.plan()
        if not statements:
            logger.info("No schema changes detected")
            return GenerateResult()

        compiled = self.compile(statements, name)
        if compiled.fallback_count:
            logger.info(
                "%d of %d statement(s) will be executed as raw SQL",
                compiled.fallback_count,
                len(statements),
            )

        migration = self.write(compiled.artifact)
        return GenerateResult(statements=statements, compiled=compiled, migration=migration)

    def write(self, artifact: MigrationArtifact) -> WrittenMigration:
        """Write an assembled artifact under the configured migrations directory."""
        return self._writer.write(artifact)

    def preview(self) -> str:
        """Return the Atlas dry-run output as is.

        Raises:
            DiffUnavailableError: If the Atlas dry run fails.
        """
        result = self._diff_source(self.config.atlas_env)
        if not result.ok:
            raise DiffUnavailableError(
                f"Atlas dry run for env '{self.config.atlas_env}' failed "
                f"with exit code {result.returncode}",
                returncode=result.returncode,
                output=result.output,
            )
        return result.output

    def apply(self) -> CommandResult:
        """Apply the declared schema with Atlas, then refresh db/schema.rb.

        Raises:
            SchemaApplyError: If Atlas fails; the schema dump is skipped.
        """
        logger.info("Applying schema to env '%s'...", self.config.atlas_env)
        result = self._client.apply(self.config.atlas_env)
        if not result.ok:
            raise SchemaApplyError(
                f"Atlas schema apply for env '{self.config.atlas_env}' failed "
                f"with exit code {result.returncode}",
                returncode=result.returncode,
                output=result.output,
            )

        if self.config.schema_dump:
            logger.info("Updating Rails schema.rb...")
            run_schema_dump(self._client)
        return result
