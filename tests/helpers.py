"""Shared test helpers for schemabridge tests."""

from datetime import datetime, timezone
from pathlib import Path

from schemabridge.atlas.client import CommandResult
from schemabridge.config import Config
from schemabridge.migrations.models import RawStatement

ATLAS_DRY_RUN_OUTPUT = """\
Planning migration statements (6 in total):

  -- create "teams" table:
    -> CREATE TABLE "teams" (
  -- add column "bio" to table: "users":
    -> ALTER TABLE `users` ADD COLUMN `bio` varchar(500) NOT NULL;
  -- create index "idx_email" to table: "users":
    -> CREATE UNIQUE INDEX `idx_email` ON `users` (`email`);
  -- create index "idx_users_name" to table: "users":
    -> CREATE INDEX idx_users_name ON users (name);
  -- drop "legacy" table:
    -> DROP TABLE `legacy`;
  -- modify "logs" table:
    -> ALTER TABLE `logs` RENAME TO `audit_logs`;

-------------------------------------------
"""

EMPTY_DRY_RUN_OUTPUT = "Schema is synced, no changes to be made\n"


class FakeDiffSource:
    """Canned stand-in for ``AtlasClient.dry_run``; records each call."""

    def __init__(self, output: str = ATLAS_DRY_RUN_OUTPUT, returncode: int = 0):
        self.output = output
        self.returncode = returncode
        self.calls: list[str] = []

    def __call__(self, env: str) -> CommandResult:
        self.calls.append(env)
        return CommandResult(output=self.output, returncode=self.returncode)


class FixedClock:
    """Clock returning the same instant on every call."""

    def __init__(self, moment: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


def make_test_config(tmp_path: Path, **overrides) -> Config:
    """Create a Config rooted in a temporary directory."""
    values = {"atlas_env": "test", "project_root": str(tmp_path)}
    values.update(overrides)
    return Config(**values)


def make_statements(*texts: str) -> list[RawStatement]:
    """Wrap SQL strings as RawStatements numbered from 1."""
    return [RawStatement(position=i, text=text) for i, text in enumerate(texts, 1)]
