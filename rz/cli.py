"""
rz CLI - rat-zsh plugin manager.

Usage:
    rz init                  Print initialization code for .zshrc
    rz sync [--jobs N]       Clone/update plugins defined in config.toml
    rz list [--check-update] Show plugins in load order with source/type metadata
    rz order                 Print plugin slugs in load order
    rz home                  Print the rat-zsh home directory
    rz config                Edit config.toml (creates a sample when missing)
    rz upgrade [--rev REV]   Update rat-zsh itself to the latest release
"""

import argparse
import logging
import sys

from ratzsh import __version__
from ratzsh.errors import RzError


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="rz",
        description="rat-zsh (rz) - minimal zsh plugin manager",
    )
    parser.add_argument("--version", action="version", version=f"rz {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    commands.add_parser("init", help="Print initialization code for .zshrc")

    sync = commands.add_parser("sync", help="Clone/update plugins defined in config.toml")
    sync.add_argument(
        "-j", "--jobs", type=int, default=None, help="Number of plugins synced in parallel"
    )

    list_ = commands.add_parser(
        "list", help="Show plugins in load order with source/type metadata"
    )
    list_.add_argument(
        "--check-update",
        action="store_true",
        help="Show ahead/behind and dirty state against the fetched upstream",
    )

    commands.add_parser("order", help="Print plugin slugs in load order")
    commands.add_parser("home", help="Print the rat-zsh home directory")
    commands.add_parser("config", help="Edit config.toml (creates a sample when missing)")

    upgrade = commands.add_parser("upgrade", help="Update rat-zsh itself to the latest release")
    upgrade.add_argument("--rev", default=None, help="Tag, branch or commit to upgrade to")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for rz CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)

    try:
        if args.command == "init":
            from rz.commands.init import init_command

            return init_command(args)

        elif args.command == "sync":
            from rz.commands.sync import sync_command

            return sync_command(args)

        elif args.command == "list":
            from rz.commands.list import list_command

            return list_command(args)

        elif args.command == "order":
            from rz.commands.list import order_command

            return order_command(args)

        elif args.command == "home":
            from rz.commands.home import home_command

            return home_command(args)

        elif args.command == "config":
            from rz.commands.config import config_command

            return config_command(args)

        elif args.command == "upgrade":
            from rz.commands.upgrade import upgrade_command

            return upgrade_command(args)

    except RzError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
