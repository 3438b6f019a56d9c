"""Extract the planned DDL statements from Atlas dry-run output."""

from __future__ import annotations

import logging
from typing import Callable

from schemabridge.atlas.client import CommandResult
from schemabridge.exceptions import DiffUnavailableError
from schemabridge.migrations.models import RawStatement

__all__ = ["STATEMENT_MARKER", "DDL_KEYWORDS", "extract_statements", "fetch_statements"]

logger = logging.getLogger(__name__)

STATEMENT_MARKER = "-> "
DDL_KEYWORDS = ("CREATE", "ALTER", "DROP")

DiffSource = Callable[[str], CommandResult]


def _statement_text(line: str) -> str | None:
    """Return the statement carried by ``line``, or None if it carries none."""
    stripped = line.strip()
    if not stripped.startswith(STATEMENT_MARKER):
        return None

    sql = stripped[len(STATEMENT_MARKER) :].strip()
    upper_sql = sql.upper()
    if not any(keyword in upper_sql for keyword in DDL_KEYWORDS):
        logger.debug("Skipping non-DDL plan line: %s", sql)
        return None
    return sql


def extract_statements(output: str) -> list[RawStatement]:
    """Extract the ordered DDL statements from Atlas dry-run output.

    Only lines of the form ``-> <statement>`` whose statement mentions
    CREATE, ALTER or DROP (in any case) are kept. Statements are returned
    trimmed but otherwise exactly as printed.
    """
    statements: list[RawStatement] = []
    for line in output.splitlines():
        sql = _statement_text(line)
        if sql is None:
            continue
        statements.append(RawStatement(position=len(statements) + 1, text=sql))

    logger.debug("Extracted %d statement(s) from Atlas output", len(statements))
    return statements


def fetch_statements(source: DiffSource, env: str) -> list[RawStatement]:
    """Run the diff source once and extract its planned statements.

    Raises:
        DiffUnavailableError: If the diff source exits with a non-zero status.
    """
    result = source(env)
    if not result.ok:
        raise DiffUnavailableError(
            f"Atlas dry run for env '{env}' failed with exit code {result.returncode}",
            returncode=result.returncode,
            output=result.output,
        )
    return extract_statements(result.output)
