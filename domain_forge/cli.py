"""Domain Forge command line interface.

Usage::

    domain-forge make Invoice --props "id:string,total:float,status:enum[draft|sent|paid]"
    domain-forge make Invoice --props "total:?float" --dry-run
    domain-forge publish-stubs --force
    python -m domain_forge.cli make Customer --with-model
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from domain_forge.config import CONFIG_FILENAME, ForgeConfig
from domain_forge.errors import ForgeError
from domain_forge.scaffolder import Scaffolder, publish_stubs
from domain_forge.utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    relative_to,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domain-forge",
        description="Domain Forge -- scaffold layered domain modules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  domain-forge make Invoice --props \"id:string,total:float\"\n"
            "  domain-forge make Invoice --props \"status:enum[draft|paid]\" --dry-run\n"
            "  domain-forge publish-stubs --force\n"
        ),
    )
    parser.add_argument(
        "--project-root",
        default=None,
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Configuration file (default: <project-root>/{CONFIG_FILENAME} if present)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    make = commands.add_parser("make", help="Generate a new module")
    make.add_argument("name", help="Module name in StudlyCase, e.g. Invoice")
    make.add_argument(
        "--props",
        default=None,
        help="Comma-separated name:type list, e.g. \"id:string,total:?float\"",
    )
    make.add_argument(
        "--with-model",
        action="store_true",
        help="Also create a storage model for the module",
    )
    make.add_argument(
        "--dry-run",
        action="store_true",
        help="List the artifacts that would be generated without writing",
    )

    publish = commands.add_parser(
        "publish-stubs", help="Copy the built-in stubs into the project for customisation"
    )
    publish.add_argument(
        "--force",
        action="store_true",
        help="Overwrite stub files that already exist",
    )
    return parser


def load_config(project_root: str | None, config_file: str | None) -> ForgeConfig:
    """Resolve the configuration for one invocation.

    An explicit ``--config`` file wins, then ``domain-forge.json`` in the
    project root, then ``DOMAIN_FORGE_*`` environment variables.
    """
    root = Path(project_root) if project_root else None
    path = Path(config_file) if config_file else (root or Path(".")) / CONFIG_FILENAME
    if config_file or path.is_file():
        config = ForgeConfig.load(path)
        if root is not None:
            config = config.model_copy(update={"project_root": root})
        return config
    return ForgeConfig.from_env(project_root=root)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def run_make(config: ForgeConfig, args: argparse.Namespace) -> None:
    scaffolder = Scaffolder(config)
    if args.dry_run:
        plan = scaffolder.plan(args.name, args.props)
        for message in plan.warnings:
            print_warning(message)
        rows = {
            relative_to(plan.module_dir / artifact.path, config.project_root): artifact.template
            for artifact in plan.artifacts
        }
        print_summary_table(rows, title=f"Dry run: {args.name}")
        return
    asyncio.run(scaffolder.generate(args.name, args.props, with_model=args.with_model))


def run_publish_stubs(config: ForgeConfig, args: argparse.Namespace) -> None:
    written, skipped = publish_stubs(config.stubs_dir, force=args.force)
    for path in written:
        print_success(f"Published: {path.name}")
    for path in skipped:
        print_warning(f"Kept existing stub: {path.name} (use --force to overwrite)")
    console.print(f"Stubs directory: {relative_to(config.stubs_dir, config.project_root)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``domain-forge`` and ``python -m domain_forge.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.project_root, args.config)
    except (OSError, ValidationError) as exc:
        print_error(f"Error: could not load configuration: {exc}")
        sys.exit(1)

    try:
        if args.command == "make":
            run_make(config, args)
        else:
            run_publish_stubs(config, args)
    except ForgeError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
