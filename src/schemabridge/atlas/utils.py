"""Helpers shared by the CLI and the bridge for Atlas-backed operations.

Keeps config loading and the Rails schema refresh out of the CLI so they can
be tested without spawning processes.
"""

import logging
from typing import Optional

from schemabridge.atlas.client import AtlasClient, CommandResult
from schemabridge.config import Config

logger = logging.getLogger(__name__)

SCHEMA_DUMP_COMMAND = ("bin/rails", "db:schema:dump")


def build_config_and_validate(
    *,
    atlas_env: Optional[str] = None,
    atlas_bin: Optional[str] = None,
    project_root: Optional[str] = None,
    migrations_dir: Optional[str] = None,
    rails_version: Optional[str] = None,
    type_map_path: Optional[str] = None,
    schema_dump: Optional[bool] = None,
) -> Config:
    """Load config from env with overrides and validate it.

    Raises:
        ConfigError: If the resulting configuration is invalid.
    """
    config = Config.from_env(
        atlas_env=atlas_env,
        atlas_bin=atlas_bin,
        project_root=project_root,
        migrations_dir=migrations_dir,
        rails_version=rails_version,
        type_map_path=type_map_path,
        schema_dump=schema_dump,
    )
    config.validate()
    return config


def run_schema_dump(client: AtlasClient) -> CommandResult:
    """Refresh db/schema.rb after Atlas changed the database.

    Runs through the client so it shares the project working directory.
    """
    result = client.run(SCHEMA_DUMP_COMMAND)
    if not result.ok:
        logger.warning(
            "Rails schema dump failed with exit code %d:\n%s",
            result.returncode,
            result.output.rstrip(),
        )
    return result
