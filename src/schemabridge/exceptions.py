"""Exception classes for schemabridge."""

__all__ = [
    "SchemaBridgeError",
    "ConfigError",
    "TypeMapError",
    "AtlasError",
    "DiffUnavailableError",
    "SchemaApplyError",
    "MigrationWriteError",
]


class SchemaBridgeError(Exception):
    """Base exception for schemabridge."""


class ConfigError(SchemaBridgeError):
    """Error in configuration."""


class TypeMapError(SchemaBridgeError):
    """Error loading a type mapping definition."""


class AtlasError(SchemaBridgeError):
    """An Atlas invocation exited with a non-zero status."""

    def __init__(self, message: str, returncode: int, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class DiffUnavailableError(AtlasError):
    """The Atlas dry run failed, so no migration plan is available."""


class SchemaApplyError(AtlasError):
    """Atlas failed to apply the declared schema."""


class MigrationWriteError(SchemaBridgeError):
    """Error writing a migration file."""
