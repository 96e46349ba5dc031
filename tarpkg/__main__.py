"""CLI interface for the package manager."""

import argparse
import sys
from typing import List, Optional

import yaml

from . import __version__
from .commands import (
    run_clean_cmd,
    run_create_cmd,
    run_extract_cmd,
    run_fetch_cmd,
    run_install_cmd,
    run_list_cmd,
    run_sign_cmd,
    run_upgrade_cmd,
)
from .common.config import DEFAULT_CONFIG_PATH, load_typed_config
from .common.logger import setup_logger
from .repos.repo import Repo
from .upgrade.planner import UpgradePlanner

PACKAGE_COMMANDS = {
    "clean": ("clean an extracted package", "packages"),
    "create": ("create a package", "packages"),
    "extract": ("extract a package", "packages"),
    "fetch": ("download a package", "packages"),
    "install": ("install a package", "packages"),
    "list": ("list package contents", "packages"),
    "sign": ("get a file signature", "files"),
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``pkg``."""
    parser = argparse.ArgumentParser(
        prog="pkg", description="Fetch, verify and install tar packages from mirrors"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="verbosity level"
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH, help="path to the YAML configuration file"
    )
    parser.add_argument("--target", help="target identifier to sync packages for")
    parser.add_argument("--root", help="root directory packages are installed into")

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    for name, (help_text, arg_name) in PACKAGE_COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("names", nargs="+", metavar=arg_name[:-1], help=f"the {arg_name} to use")
    subparsers.add_parser("upgrade", help="upgrade all packages")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ``pkg`` CLI.

    Per-package failures are reported on stderr and do not affect the
    exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_usage(sys.stderr)
        print("pkg: no command specified", file=sys.stderr)
        return 1

    try:
        config = load_typed_config(args.config)
        setup_logger(
            "tarpkg",
            log_dir=config.logging.log_dir,
            level="DEBUG" if args.verbose else config.logging.level,
            file_logging=config.logging.file_logging,
        )
    except (yaml.YAMLError, TypeError, ValueError, OSError) as e:
        print(f"pkg: config: {args.config}: {e}", file=sys.stderr)
        return 1

    if args.target:
        config.target = args.target
    if args.root:
        config.install_root = args.root

    repo = Repo.from_config(config)
    try:
        if args.command == "upgrade":
            planner = UpgradePlanner(
                repo,
                installed_dir=config.installed_dir,
                install_root=config.install_root,
            )
            run_upgrade_cmd(planner)
        elif args.command == "install":
            run_install_cmd(repo, args.names, install_root=config.install_root)
        else:
            handlers = {
                "clean": run_clean_cmd,
                "create": run_create_cmd,
                "extract": run_extract_cmd,
                "fetch": run_fetch_cmd,
                "list": run_list_cmd,
                "sign": run_sign_cmd,
            }
            handlers[args.command](repo, args.names)
    finally:
        repo.transport.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
