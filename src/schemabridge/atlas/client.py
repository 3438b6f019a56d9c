import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

MISSING_BINARY_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandResult:
    """Combined output and exit status of an external command."""

    output: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class AtlasClient:
    """Thin wrapper around the Atlas CLI for ``schema apply`` invocations.

    Each call runs Atlas exactly once and never retries. The exit status is
    the only success signal; stdout and stderr are returned together so a
    failure can be reported with whatever Atlas printed.
    """

    def __init__(self, binary: str = "atlas", cwd: Optional[Path] = None) -> None:
        self._binary = binary
        self._cwd = cwd

    def schema_apply_command(
        self, env: str, *, dry_run: bool = False, auto_approve: bool = False
    ) -> list[str]:
        command = [self._binary, "schema", "apply", "--env", env]
        if dry_run:
            command.append("--dry-run")
        if auto_approve:
            command.append("--auto-approve")
        return command

    def dry_run(self, env: str) -> CommandResult:
        """Show the statements Atlas would apply for ``env``."""
        return self.run(self.schema_apply_command(env, dry_run=True))

    def apply(self, env: str) -> CommandResult:
        """Apply the declared schema to ``env`` without prompting."""
        return self.run(self.schema_apply_command(env, auto_approve=True))

    def run(self, command: Sequence[str]) -> CommandResult:
        logger.debug("Running: %s", " ".join(command))
        try:
            completed = subprocess.run(
                list(command),
                cwd=self._cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            logger.debug("Command not found: %s", exc)
            return CommandResult(
                output=f"{command[0]}: command not found",
                returncode=MISSING_BINARY_EXIT_CODE,
            )

        output = completed.stdout or ""
        if completed.stderr:
            output = f"{output}{completed.stderr}"
        return CommandResult(output=output, returncode=completed.returncode)
