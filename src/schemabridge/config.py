"""Configuration management for schemabridge."""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from schemabridge.exceptions import ConfigError

_RAILS_VERSION_RE = re.compile(r"^\d+\.\d+$")
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in _FALSE_VALUES


@dataclass
class Config:
    """Configuration for schemabridge."""

    atlas_env: str = "dev"
    atlas_bin: str = "atlas"
    project_root: str = "."
    migrations_dir: str = "db/migrate"
    rails_version: str = "8.0"
    type_map_path: Optional[str] = None
    schema_dump: bool = True

    @classmethod
    def from_env(
        cls,
        *,
        atlas_env: Optional[str] = None,
        atlas_bin: Optional[str] = None,
        project_root: Optional[str] = None,
        migrations_dir: Optional[str] = None,
        rails_version: Optional[str] = None,
        type_map_path: Optional[str] = None,
        schema_dump: Optional[bool] = None,
    ) -> "Config":
        """Load configuration from env vars, with CLI overrides.

        Priority (highest to lowest):
        1. Explicit parameters (CLI args)
        2. Environment variables
        3. Defaults
        """

        def resolve(explicit, env_key, default):
            if explicit is not None:
                return explicit
            return os.environ.get(env_key, default)

        dump_env = os.environ.get("SCHEMABRIDGE_SCHEMA_DUMP")

        return cls(
            atlas_env=resolve(atlas_env, "SCHEMABRIDGE_ATLAS_ENV", "dev"),
            atlas_bin=resolve(atlas_bin, "SCHEMABRIDGE_ATLAS_BIN", "atlas"),
            project_root=resolve(project_root, "SCHEMABRIDGE_ROOT", "."),
            migrations_dir=resolve(
                migrations_dir, "SCHEMABRIDGE_MIGRATIONS_DIR", "db/migrate"
            ),
            rails_version=resolve(rails_version, "SCHEMABRIDGE_RAILS_VERSION", "8.0"),
            type_map_path=resolve(type_map_path, "SCHEMABRIDGE_TYPE_MAP", None),
            schema_dump=schema_dump
            if schema_dump is not None
            else (_parse_bool(dump_env) if dump_env is not None else True),
        )

    @property
    def root_path(self) -> Path:
        return Path(self.project_root)

    @property
    def migrations_path(self) -> Path:
        """Migrations directory, resolved against the project root unless absolute."""
        path = Path(self.migrations_dir)
        if path.is_absolute():
            return path
        return self.root_path / path

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigError: Listing every invalid or missing setting.
        """
        problems = []
        if not self.atlas_env:
            problems.append("atlas_env (use --env or SCHEMABRIDGE_ATLAS_ENV)")
        if not self.atlas_bin:
            problems.append("atlas_bin (use --atlas-bin or SCHEMABRIDGE_ATLAS_BIN)")
        if not self.migrations_dir:
            problems.append(
                "migrations_dir (use --migrations-dir or SCHEMABRIDGE_MIGRATIONS_DIR)"
            )
        if not _RAILS_VERSION_RE.match(self.rails_version or ""):
            problems.append(
                f"rails_version must look like '8.0', got {self.rails_version!r}"
            )
        if self.type_map_path and not Path(self.type_map_path).is_file():
            problems.append(f"type map file not found: {self.type_map_path}")

        if problems:
            raise ConfigError(
                "Invalid configuration:\n  - " + "\n  - ".join(problems)
            )
