"""Persist assembled migrations under db/migrate."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from schemabridge.exceptions import MigrationWriteError
from schemabridge.migrations.models import MigrationArtifact, WrittenMigration

__all__ = ["MIGRATION_EXTENSION", "VERSION_FORMAT", "MigrationWriter"]

logger = logging.getLogger(__name__)

MIGRATION_EXTENSION = ".rb"
VERSION_FORMAT = "%Y%m%d%H%M%S"
MAX_VERSION_ATTEMPTS = 60

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MigrationWriter:
    """Write migration artifacts as ``<UTC timestamp>_<slug>.rb``.

    Existing files are never overwritten. When the timestamped name is
    already taken, the version is moved forward one second at a time until
    a free name is found.
    """

    def __init__(self, migrations_dir: Path, clock: Clock = _utcnow) -> None:
        self.migrations_dir = Path(migrations_dir)
        self._clock = clock

    def path_for(self, version: str, slug: str) -> Path:
        return self.migrations_dir / f"{version}_{slug}{MIGRATION_EXTENSION}"

    def _version_taken(self, version: str) -> bool:
        """Rails migration versions must be unique regardless of slug."""
        return any(self.migrations_dir.glob(f"{version}_*{MIGRATION_EXTENSION}"))

    def write(self, artifact: MigrationArtifact) -> WrittenMigration:
        """Write ``artifact`` once and return its final identity.

        Raises:
            MigrationWriteError: If the directory or file cannot be written.
        """
        try:
            self.migrations_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MigrationWriteError(
                f"Failed to create migrations directory '{self.migrations_dir}': {exc}"
            ) from exc

        moment = self._clock()
        for _ in range(MAX_VERSION_ATTEMPTS):
            version = moment.strftime(VERSION_FORMAT)
            path = self.path_for(version, artifact.slug)
            if self._version_taken(version):
                logger.debug("Version %s already in use, trying the next second", version)
                moment += timedelta(seconds=1)
                continue
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(artifact.content)
            except FileExistsError:
                logger.debug("%s already exists, trying the next second", path.name)
                moment += timedelta(seconds=1)
                continue
            except OSError as exc:
                raise MigrationWriteError(
                    f"Failed to write migration '{path}': {exc}"
                ) from exc

            logger.info("Wrote migration %s", path)
            return WrittenMigration(version=version, path=path, artifact=artifact)

        raise MigrationWriteError(
            f"No free migration version for '{artifact.slug}' in {self.migrations_dir}"
        )
