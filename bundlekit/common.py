"""Shared helpers: filesystem utilities, public URL normalisation and command running."""

from __future__ import annotations

import functools
import logging
import os
import shutil
import stat
import subprocess
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

BUILDING = "📦"
SUCCESS = "✅"
ERROR = "❌"
SERVER = "📡"


class CommandError(RuntimeError):
    """An external command could not be started or finished unsuccessfully."""


def parse_public_url(val: str) -> str:
    """Ensure a public URL starts and ends with a slash."""
    prefix = "" if val.startswith("/") else "/"
    suffix = "" if val.endswith("/") else "/"
    return f"{prefix}{val}{suffix}"


def copy_dir_recursive(from_dir: str | os.PathLike, to_dir: str | os.PathLike) -> None:
    """Copy the contents of ``from_dir`` into ``to_dir``, overwriting existing files."""
    if not path_exists(from_dir):
        raise FileNotFoundError(
            f"directory can not be copied as it does not exist {os.fspath(from_dir)!r}"
        )
    shutil.copytree(from_dir, to_dir, dirs_exist_ok=True)


def remove_dir_all(path: str | os.PathLike) -> None:
    """Recursively delete a directory; a missing directory is not an error."""
    if not path_exists(path):
        return
    shutil.rmtree(path)


def path_exists(path: str | os.PathLike) -> bool:
    """Report whether ``path`` exists; errors other than "not found" propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def is_executable(path: str | os.PathLike) -> bool:
    """Report whether ``path`` exists, is a regular file and is marked executable."""
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return False
    if not stat.S_ISREG(st.st_mode):
        return False
    if os.name != "posix":
        return True
    return bool(st.st_mode & stat.S_IXUSR)


@functools.cache
def _cwd() -> Path:
    return Path.cwd()


def strip_prefix(target: str | os.PathLike) -> Path:
    """Make ``target`` relative to the working directory, or return it unchanged."""
    target = Path(target)
    try:
        return target.relative_to(_cwd())
    except ValueError:
        return target


def run_command(
    name: str, path: str | os.PathLike, args: Iterable[str | os.PathLike]
) -> None:
    """Run a program to completion, raising :class:`CommandError` on failure."""
    argv = [os.fspath(path), *(os.fspath(arg) for arg in args)]
    logger.debug("%s args: %r", name, argv[1:])
    try:
        completed = subprocess.run(argv, check=False)
    except OSError as exc:
        raise CommandError(f"error spawning {name} call") from exc
    if completed.returncode != 0:
        raise CommandError(f"{name} call returned a bad status")