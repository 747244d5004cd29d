"""Command line entry point: cleaning build output and showing the configuration."""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path
from pprint import pformat

from bundlekit.common import CommandError, remove_dir_all
from bundlekit.layers import ConfigOpts
from bundlekit.options import ConfigError, ConfigOptsClean
from bundlekit.runtime import RtcClean

logger = logging.getLogger(__name__)

_CONFIG_ENV = "TRUNK_CONFIG"


def run_clean(clean_opts: ConfigOptsClean, config: str | os.PathLike | None) -> RtcClean:
    """Remove the dist dir and, if configured, run ``cargo clean``."""
    cfg = ConfigOpts.rtc_clean(clean_opts, config)
    try:
        remove_dir_all(cfg.dist)
    except OSError as exc:
        logger.debug("ignoring error while removing %s: %s", cfg.dist, exc)
    if cfg.cargo:
        logger.debug("cleaning cargo dir")
        try:
            completed = subprocess.run(["cargo", "clean"], capture_output=True, check=False)
        except OSError as exc:
            raise CommandError("error spawning cargo clean call") from exc
        if completed.returncode != 0:
            stderr = completed.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            raise CommandError(stderr or "")
    return cfg


def show_config(config: str | os.PathLike | None) -> ConfigOpts:
    """Print the configuration taken from the config file and environment."""
    cfg = ConfigOpts.full(config)
    print(pformat(cfg))
    return cfg


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the command line interface."""
    parser = argparse.ArgumentParser(
        prog="trunk",
        description="Build, bundle & ship your Rust WASM application to the web.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the Trunk config file [default: Trunk.toml]",
    )
    parser.add_argument("-v", action="store_true", help="Enable verbose logging.")
    subcommands = parser.add_subparsers(dest="action", required=True)

    clean = subcommands.add_parser("clean", help="Clean output artifacts.")
    clean.add_argument(
        "-d",
        "--dist",
        type=Path,
        default=None,
        help="The output dir for all final assets [default: dist]",
    )
    clean.add_argument(
        "--cargo",
        action="store_true",
        help="Optionally perform a cargo clean [default: false]",
    )

    config = subcommands.add_parser("config", help="Trunk config controls.")
    config_actions = config.add_subparsers(dest="config_action", required=True)
    config_actions.add_parser("show", help="Show Trunk's current config pre-CLI.")
    return parser


def _describe(exc: BaseException) -> str:
    lines = [str(exc)]
    cause = exc.__cause__
    while cause is not None:
        lines.append(f"  caused by: {cause}")
        cause = cause.__cause__
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line interface; returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(format="%(levelname)s %(message)s")
    logging.getLogger("bundlekit").setLevel(logging.DEBUG if args.v else logging.INFO)

    config = args.config
    if config is None and os.environ.get(_CONFIG_ENV):
        config = Path(os.environ[_CONFIG_ENV])

    try:
        if args.action == "clean":
            run_clean(ConfigOptsClean(dist=args.dist, cargo=args.cargo), config)
        elif args.action == "config" and args.config_action == "show":
            show_config(config)
    except (ConfigError, CommandError, OSError) as exc:
        print(f"Error: {_describe(exc)}", file=sys.stderr)
        return 1
    return 0