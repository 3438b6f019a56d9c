"""Assemble rendered operations into a Rails migration class."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from schemabridge.migrations.models import MigrationArtifact, RenderedLine

__all__ = [
    "DEFAULT_MIGRATION_NAME",
    "DEFAULT_FRAMEWORK_VERSION",
    "MIGRATION_BASE_CLASS",
    "IRREVERSIBLE_SIGNAL",
    "slugify",
    "camelize",
    "class_name_for",
    "render_migration",
    "assemble",
]

logger = logging.getLogger(__name__)

DEFAULT_MIGRATION_NAME = "schema_update"
DEFAULT_FRAMEWORK_VERSION = "8.0"
MIGRATION_BASE_CLASS = "ActiveRecord::Migration"
IRREVERSIBLE_SIGNAL = "ActiveRecord::IrreversibleMigration"
FALLBACK_SLUG = "generated_migration"
DIGIT_PREFIX = "migration"

# Filesystems commonly cap names at 255 bytes; leave room for
# "<14-digit timestamp>_" and ".rb".
MAX_FILENAME_LENGTH = 240
MAX_SLUG_LENGTH = MAX_FILENAME_LENGTH - 14 - 1 - 3

BODY_INDENT = "    "

_SLUG_SEPARATOR_PATTERN = re.compile(r"[^a-z0-9_]+")
# Same word boundaries as ActiveSupport's String#underscore.
_ACRONYM_BOUNDARY_PATTERN = re.compile(r"([A-Z\d]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_PATTERN = re.compile(r"([a-z\d])([A-Z])")


def _underscore(name: str) -> str:
    name = _ACRONYM_BOUNDARY_PATTERN.sub(r"\1_\2", name)
    return _CAMEL_BOUNDARY_PATTERN.sub(r"\1_\2", name)


def slugify(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Turn a migration name into a filename-safe slug.

    "Add user-tables & indexes" -> "add_user_tables_indexes",
    "AddUsers" -> "add_users". A slug never starts with a digit, because
    Rails derives the class name from it.
    """
    slug = _SLUG_SEPARATOR_PATTERN.sub("_", _underscore(name).lower()).strip("_")
    if not slug:
        return FALLBACK_SLUG
    if slug[0].isdigit():
        slug = f"{DIGIT_PREFIX}_{slug}"

    if len(slug) > max_length:
        truncated = slug[:max_length]
        last_underscore = truncated.rfind("_")
        if last_underscore > max_length * 0.7:
            truncated = truncated[:last_underscore]
        logger.warning("Migration filename truncated due to length limits")
        slug = truncated
    return slug


def camelize(slug: str) -> str:
    """Rails' String#camelize for a lower-case slug: "add_users" -> "AddUsers"."""
    return "".join(part.capitalize() for part in slug.split("_") if part)


def class_name_for(name: str) -> str:
    """Derive the Ruby class name Rails expects for the migration file.

    Rails loads ``<version>_<slug>.rb`` and looks up ``slug.camelize``, so
    the class name is always the camelized slug.
    """
    return camelize(slugify(name))


def render_migration(
    class_name: str,
    body: Sequence[RenderedLine],
    framework_version: str = DEFAULT_FRAMEWORK_VERSION,
) -> str:
    """Render the full migration class source."""
    lines = [
        f"class {class_name} < {MIGRATION_BASE_CLASS}[{framework_version}]",
        "  def up",
    ]
    for rendered in body:
        lines.extend(
            f"{BODY_INDENT}{line}" if line else "" for line in rendered.lines
        )
    lines.extend(
        [
            "  end",
            "",
            "  def down",
            "    # Rollbacks are produced by reverting the schema source and generating again",
            f"    raise {IRREVERSIBLE_SIGNAL}",
            "  end",
            "end",
        ]
    )
    return "\n".join(lines) + "\n"


def assemble(
    body: Sequence[RenderedLine],
    name: Optional[str] = None,
    framework_version: str = DEFAULT_FRAMEWORK_VERSION,
) -> Optional[MigrationArtifact]:
    """Build a migration artifact, or return None when there is nothing to migrate.

    The statement order of ``body`` is kept as is; later statements may
    depend on earlier ones and nothing is reordered.
    """
    if not body:
        return None

    name = name or DEFAULT_MIGRATION_NAME
    class_name = class_name_for(name)
    return MigrationArtifact(
        name=name,
        slug=slugify(name),
        class_name=class_name,
        framework_version=framework_version,
        body=tuple(body),
        content=render_migration(class_name, body, framework_version),
    )
