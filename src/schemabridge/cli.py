"""Command-line interface for schemabridge."""

import argparse
import logging
import sys
from typing import Optional

from schemabridge.atlas.utils import build_config_and_validate
from schemabridge.bridge import MigrationBridge
from schemabridge.config import Config
from schemabridge.exceptions import AtlasError, ConfigError, SchemaBridgeError
from schemabridge.migrations.assembler import DEFAULT_MIGRATION_NAME


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--env", dest="atlas_env", help="Atlas environment name")
    parser.add_argument("--root", dest="project_root", help="Rails application root")
    parser.add_argument(
        "--migrations-dir", help="Migrations directory, relative to --root"
    )
    parser.add_argument("--rails-version", help="ActiveRecord::Migration version")
    parser.add_argument(
        "--type-map", dest="type_map_path", help="YAML file with extra type mappings"
    )
    parser.add_argument("--atlas-bin", help="Path to the atlas executable")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemabridge",
        description="Generate Rails migrations from Atlas schema plans",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate", aliases=["g"], help="Generate a Rails migration from the schema diff"
    )
    generate_parser.add_argument(
        "name",
        nargs="?",
        default=DEFAULT_MIGRATION_NAME,
        help=f"Migration name (default: {DEFAULT_MIGRATION_NAME})",
    )
    _add_common_arguments(generate_parser)

    preview_parser = subparsers.add_parser(
        "preview", aliases=["p"], help="Preview schema changes"
    )
    _add_common_arguments(preview_parser)

    apply_parser = subparsers.add_parser(
        "apply", help="Apply the schema and update Rails schema.rb"
    )
    apply_parser.add_argument(
        "--skip-schema-dump",
        action="store_true",
        help="Do not run rails db:schema:dump after applying",
    )
    _add_common_arguments(apply_parser)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    if args.command in ("generate", "g"):
        return cmd_generate(args)
    elif args.command in ("preview", "p"):
        return cmd_preview(args)
    elif args.command == "apply":
        return cmd_apply(args)
    else:
        print(f"Command '{args.command}' not yet implemented", file=sys.stderr)
        return 1


def _load_config(args: argparse.Namespace) -> Config:
    schema_dump = None
    if getattr(args, "skip_schema_dump", False):
        schema_dump = False
    return build_config_and_validate(
        atlas_env=getattr(args, "atlas_env", None),
        atlas_bin=getattr(args, "atlas_bin", None),
        project_root=getattr(args, "project_root", None),
        migrations_dir=getattr(args, "migrations_dir", None),
        rails_version=getattr(args, "rails_version", None),
        type_map_path=getattr(args, "type_map_path", None),
        schema_dump=schema_dump,
    )


def _print_atlas_failure(label: str, error: AtlasError) -> None:
    print(f"{label} error: {error}", file=sys.stderr)
    if error.output.strip():
        print(error.output.rstrip(), file=sys.stderr)


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a migration from the Atlas plan."""
    try:
        config = _load_config(args)
        bridge = MigrationBridge(config)

        statements = bridge.plan()
        if not statements:
            print("No schema changes detected")
            return 0

        print(f"Found {len(statements)} changes:")
        for statement in statements:
            print(f"  {statement.position}. {statement.text}")

        compiled = bridge.compile(statements, args.name)
        if compiled.fallback_count:
            print(
                f"{compiled.fallback_count} statement(s) not recognized; "
                "they will run as raw SQL via execute"
            )

        migration = bridge.write(compiled.artifact)
        print(f"Created migration: {migration.filename}")
        print(f"Location: {migration.path}")
        print("\nMigration content:")
        print(migration.artifact.content)
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except AtlasError as e:
        _print_atlas_failure("Generation", e)
        return 1
    except SchemaBridgeError as e:
        print(f"Generation error: {e}", file=sys.stderr)
        return 1


def cmd_preview(args: argparse.Namespace) -> int:
    """Show what Atlas would change."""
    try:
        config = _load_config(args)
        bridge = MigrationBridge(config)
        print("Migration plan:")
        print(bridge.preview().rstrip())
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except AtlasError as e:
        _print_atlas_failure("Preview", e)
        return 1
    except SchemaBridgeError as e:
        print(f"Preview error: {e}", file=sys.stderr)
        return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Apply the declared schema with Atlas."""
    try:
        config = _load_config(args)
        bridge = MigrationBridge(config)
        bridge.apply()
        print("Schema applied successfully")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except AtlasError as e:
        _print_atlas_failure("Apply", e)
        return 1
    except SchemaBridgeError as e:
        print(f"Apply error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
