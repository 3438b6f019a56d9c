"""Tests for Atlas dry-run statement extraction."""

import logging

import pytest

from schemabridge.exceptions import DiffUnavailableError
from schemabridge.migrations.extractor import extract_statements, fetch_statements
from schemabridge.migrations.models import RawStatement
from tests.helpers import ATLAS_DRY_RUN_OUTPUT, FakeDiffSource


class TestExtractStatements:
    def test_extracts_statements_in_order(self):
        statements = extract_statements(ATLAS_DRY_RUN_OUTPUT)

        assert [s.text for s in statements] == [
            'CREATE TABLE "teams" (',
            "ALTER TABLE `users` ADD COLUMN `bio` varchar(500) NOT NULL;",
            "CREATE UNIQUE INDEX `idx_email` ON `users` (`email`);",
            "CREATE INDEX idx_users_name ON users (name);",
            "DROP TABLE `legacy`;",
            "ALTER TABLE `logs` RENAME TO `audit_logs`;",
        ]

    def test_positions_are_one_based_and_sequential(self):
        statements = extract_statements(ATLAS_DRY_RUN_OUTPUT)

        assert [s.position for s in statements] == [1, 2, 3, 4, 5, 6]

    def test_filters_out_non_sql_lines(self):
        output = """\
Some text
Migrating to version 1:
  -> CREATE TABLE users (id INTEGER);
Some other text
  Not a SQL statement
  -> ALTER TABLE users ADD COLUMN name VARCHAR(255);
End text
"""
        statements = extract_statements(output)

        assert statements == [
            RawStatement(1, "CREATE TABLE users (id INTEGER);"),
            RawStatement(2, "ALTER TABLE users ADD COLUMN name VARCHAR(255);"),
        ]

    def test_keyword_outside_marker_line_is_ignored(self):
        """CREATE/ALTER/DROP on unmarked lines never produces a statement."""
        output = "-- create table users\nCREATE TABLE users (id INTEGER);\n"

        assert extract_statements(output) == []

    def test_marker_line_without_ddl_keyword_is_ignored(self):
        output = "  -> SET FOREIGN_KEY_CHECKS = 0;\n  -> DROP TABLE old;\n"

        statements = extract_statements(output)

        assert [s.text for s in statements] == ["DROP TABLE old;"]

    def test_keyword_must_be_in_statement_not_marker(self):
        output = "  -> INSERT INTO t VALUES (1);\n"

        assert extract_statements(output) == []

    def test_lowercase_ddl_is_kept(self):
        output = "  -> create table users (id integer);\n  -> alter table users drop column bio;\n"

        statements = extract_statements(output)

        assert [s.text for s in statements] == [
            "create table users (id integer);",
            "alter table users drop column bio;",
        ]

    def test_skipped_marker_lines_are_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="schemabridge.migrations.extractor"):
            extract_statements("  -> SET FOREIGN_KEY_CHECKS = 0;\n")

        assert "Skipping non-DDL plan line: SET FOREIGN_KEY_CHECKS = 0;" in caplog.text

    def test_statement_text_is_only_trimmed(self):
        output = "\t   ->   ALTER TABLE  `users`   DROP COLUMN `bio`  \n"

        statements = extract_statements(output)

        assert statements[0].text == "ALTER TABLE  `users`   DROP COLUMN `bio`"

    def test_empty_output_yields_no_statements(self):
        assert extract_statements("") == []

    def test_multi_line_statements_are_not_joined(self):
        output = '  -> CREATE TABLE "teams" (\n  "id" integer NOT NULL\n);\n'

        statements = extract_statements(output)

        assert [s.text for s in statements] == ['CREATE TABLE "teams" (']


class TestFetchStatements:
    def test_calls_source_once_with_env(self):
        source = FakeDiffSource()

        statements = fetch_statements(source, "dev")

        assert source.calls == ["dev"]
        assert len(statements) == 6

    def test_failed_source_raises_diff_unavailable(self):
        source = FakeDiffSource(output="Error: connection refused\n", returncode=1)

        with pytest.raises(DiffUnavailableError) as exc_info:
            fetch_statements(source, "dev")

        assert exc_info.value.returncode == 1
        assert "connection refused" in exc_info.value.output

    def test_failed_source_output_is_not_parsed(self):
        """Statements printed before a failure are discarded, not guessed from."""
        source = FakeDiffSource(output="  -> DROP TABLE users;\n", returncode=2)

        with pytest.raises(DiffUnavailableError):
            fetch_statements(source, "dev")
