"""Core type definitions for schemabridge."""

from enum import Enum
from typing import TypeAlias

TableName: TypeAlias = str
ColumnName: TypeAlias = str
IndexName: TypeAlias = str

__all__ = [
    "TableName",
    "ColumnName",
    "IndexName",
    "OperationKind",
]


class OperationKind(Enum):
    """Shapes of DDL statement the classifier recognizes."""

    CREATE_TABLE = "create_table"
    DROP_TABLE = "drop_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    CREATE_INDEX = "create_index"
    DROP_INDEX = "drop_index"
    UNCLASSIFIED = "unclassified"
