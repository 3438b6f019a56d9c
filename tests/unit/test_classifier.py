"""Tests for DDL statement classification."""

import logging

import pytest

from schemabridge.migrations.classifier import (
    PATTERNS,
    classify,
    classify_all,
    normalize_identifier,
)
from schemabridge.migrations.models import (
    AddColumn,
    CreateIndex,
    CreateTable,
    DropColumn,
    DropIndex,
    DropTable,
    RawStatement,
    TypeSpec,
    Unclassified,
)
from schemabridge.types import OperationKind
from tests.helpers import make_statements


def _classify(text: str):
    return classify(RawStatement(position=1, text=text))


class TestCreateTable:
    def test_quoted_table_name(self):
        op = _classify('CREATE TABLE "teams" (')

        assert op == CreateTable(statement=RawStatement(1, 'CREATE TABLE "teams" ('), table="teams")

    def test_backticks_and_mixed_case_are_normalized(self):
        op = _classify("create table `Users` (id INTEGER PRIMARY KEY)")

        assert isinstance(op, CreateTable)
        assert op.table == "users"

    def test_if_not_exists_is_not_a_table_name(self):
        op = _classify("CREATE TABLE IF NOT EXISTS users (id INTEGER)")

        assert isinstance(op, Unclassified)


class TestDropTable:
    def test_drop_table(self):
        op = _classify("DROP TABLE old_table")

        assert isinstance(op, DropTable)
        assert op.table == "old_table"

    def test_trailing_semicolon(self):
        op = _classify("DROP TABLE `legacy`;")

        assert isinstance(op, DropTable)
        assert op.table == "legacy"

    def test_schema_qualified_name_is_left_verbatim(self):
        op = _classify('DROP TABLE "public"."users"')

        assert isinstance(op, Unclassified)

    def test_multiple_tables_are_left_verbatim(self):
        op = _classify("DROP TABLE users, posts")

        assert isinstance(op, Unclassified)


class TestAddColumn:
    def test_varchar_length_is_captured(self):
        op = _classify("ALTER TABLE users ADD COLUMN bio varchar(500)")

        assert isinstance(op, AddColumn)
        assert op.table == "users"
        assert op.column == "bio"
        assert op.source_type == TypeSpec("varchar", (500,))
        assert op.nullable is None

    def test_decimal_precision_and_scale(self):
        op = _classify("ALTER TABLE orders ADD COLUMN total DECIMAL(10, 2)")

        assert isinstance(op, AddColumn)
        assert op.source_type == TypeSpec("DECIMAL", (10, 2))

    def test_quoted_identifiers_are_normalized(self):
        op = _classify("ALTER TABLE `Users` ADD COLUMN `Email` VARCHAR(255);")

        assert isinstance(op, AddColumn)
        assert op.table == "users"
        assert op.column == "email"

    def test_not_null_clause(self):
        op = _classify("ALTER TABLE `users` ADD COLUMN `bio` varchar(500) NOT NULL;")

        assert isinstance(op, AddColumn)
        assert op.nullable is False

    def test_null_clause(self):
        op = _classify("ALTER TABLE users ADD COLUMN bio text NULL")

        assert isinstance(op, AddColumn)
        assert op.nullable is True

    def test_unparsed_tail_is_left_verbatim(self):
        op = _classify("ALTER TABLE users ADD COLUMN active boolean DEFAULT true")

        assert isinstance(op, Unclassified)

    def test_malformed_type_parameter_degrades_to_unclassified(self, caplog):
        with caplog.at_level(logging.WARNING):
            op = _classify("ALTER TABLE users ADD COLUMN bio varchar(abc)")

        assert isinstance(op, Unclassified)
        assert "executed verbatim" in caplog.text

    def test_empty_type_parameter_degrades_to_unclassified(self):
        op = _classify("ALTER TABLE users ADD COLUMN bio varchar()")

        assert isinstance(op, Unclassified)


class TestDropColumn:
    def test_drop_column(self):
        op = _classify("ALTER TABLE users DROP COLUMN email")

        assert op == DropColumn(
            statement=RawStatement(1, "ALTER TABLE users DROP COLUMN email"),
            table="users",
            column="email",
        )

    def test_quoted_drop_column(self):
        op = _classify('ALTER TABLE "Users" DROP COLUMN "Email";')

        assert isinstance(op, DropColumn)
        assert (op.table, op.column) == ("users", "email")


class TestCreateIndex:
    def test_unique_index(self):
        op = _classify("CREATE UNIQUE INDEX idx_email ON users (email)")

        assert isinstance(op, CreateIndex)
        assert op.name == "idx_email"
        assert op.table == "users"
        assert op.column == "email"
        assert op.unique is True

    def test_plain_index(self):
        op = _classify("CREATE INDEX idx_users_name ON users (name)")

        assert isinstance(op, CreateIndex)
        assert op.unique is False

    @pytest.mark.parametrize(
        "sql",
        [
            "CREATE UNIQUE INDEX idx_email ON users (email)",
            "create unique index `idx_email` on `users` (`email`);",
            'CREATE  UNIQUE   INDEX "idx_email" ON "users" ("email")',
        ],
    )
    def test_unique_index_never_classified_as_plain(self, sql):
        op = _classify(sql)

        assert isinstance(op, CreateIndex)
        assert op.unique is True

    def test_index_name_keeps_its_spelling(self):
        op = _classify("CREATE INDEX `INDEX_AWARDS_ON_POSITION` ON `awards` (`position`)")

        assert isinstance(op, CreateIndex)
        assert op.name == "INDEX_AWARDS_ON_POSITION"
        assert op.table == "awards"

    def test_multi_column_index_is_left_verbatim(self):
        op = _classify(
            "CREATE INDEX `index_awards_on_recipient` ON `awards` (`recipient_id`, `recipient_type`);"
        )

        assert isinstance(op, Unclassified)


class TestDropIndex:
    def test_drop_index(self):
        op = _classify("DROP INDEX idx_users_email")

        assert isinstance(op, DropIndex)
        assert op.name == "idx_users_email"
        assert op.table is None

    def test_drop_index_on_table(self):
        op = _classify("DROP INDEX `idx_email` ON `Users`;")

        assert isinstance(op, DropIndex)
        assert op.name == "idx_email"
        assert op.table == "users"


class TestUnclassified:
    def test_truncate_is_unclassified(self):
        statement = RawStatement(3, "TRUNCATE TABLE logs")

        op = classify(statement)

        assert op == Unclassified(statement=statement)

    def test_rename_is_unclassified(self):
        op = _classify("ALTER TABLE `logs` RENAME TO `audit_logs`;")

        assert isinstance(op, Unclassified)
        assert op.kind is OperationKind.UNCLASSIFIED


class TestClassifyAll:
    def test_one_operation_per_statement_in_order(self):
        statements = make_statements(
            'CREATE TABLE "teams" (',
            "TRUNCATE TABLE logs",
            "ALTER TABLE users ADD COLUMN bio varchar(abc)",
            "CREATE UNIQUE INDEX idx_email ON users (email)",
            "COMPLEX STATEMENT THAT CANNOT BE CONVERTED",
        )

        operations = classify_all(statements)

        assert len(operations) == len(statements)
        assert [op.statement for op in operations] == statements
        assert [op.kind for op in operations] == [
            OperationKind.CREATE_TABLE,
            OperationKind.UNCLASSIFIED,
            OperationKind.UNCLASSIFIED,
            OperationKind.CREATE_INDEX,
            OperationKind.UNCLASSIFIED,
        ]

    def test_empty_input(self):
        assert classify_all([]) == []


class TestPatternOrder:
    def test_unique_index_pattern_precedes_plain_index(self):
        index_patterns = [
            pattern.pattern for kind, pattern, _ in PATTERNS if kind is OperationKind.CREATE_INDEX
        ]

        assert len(index_patterns) == 2
        assert "UNIQUE" in index_patterns[0]
        assert "UNIQUE" not in index_patterns[1]

    def test_pattern_priority(self):
        kinds = [kind for kind, _, _ in PATTERNS]

        assert kinds == [
            OperationKind.CREATE_TABLE,
            OperationKind.DROP_TABLE,
            OperationKind.ADD_COLUMN,
            OperationKind.DROP_COLUMN,
            OperationKind.CREATE_INDEX,
            OperationKind.CREATE_INDEX,
            OperationKind.DROP_INDEX,
        ]


def test_normalize_identifier():
    assert normalize_identifier('"Users"') == "users"
    assert normalize_identifier("`Users`") == "users"
    assert normalize_identifier("users") == "users"
