"""Running user-configured commands at stages of the build."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass

from bundlekit.common import CommandError
from bundlekit.runtime import RtcBuild

logger = logging.getLogger(__name__)


@dataclass
class _Hook:
    command: str
    process: subprocess.Popen | None = None
    error: OSError | None = None


class HookHandles:
    """The set of hook processes started for one build stage."""

    def __init__(self, hooks: Iterable[_Hook] = ()) -> None:
        self._hooks = list(hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    @property
    def commands(self) -> list[str]:
        """The commands of the started hooks, in order."""
        return [hook.command for hook in self._hooks]

    def wait(self) -> None:
        """Wait for every hook, raising :class:`CommandError` on the first failure."""
        for hook in self._hooks:
            if hook.error is not None or hook.process is None:
                raise CommandError(
                    f"error spawning hook call for {hook.command}"
                ) from hook.error
            if hook.process.wait() != 0:
                raise CommandError(f"hook call to {hook.command} returned a bad status")
            logger.info("finished hook %s", hook.command)


def hook_environment(cfg: RtcBuild) -> dict[str, str]:
    """The environment variables describing the build, as passed to hooks."""
    return {
        "TRUNK_PROFILE": "release" if cfg.release else "debug",
        "TRUNK_HTML_FILE": os.fspath(cfg.target),
        "TRUNK_SOURCE_DIR": os.fspath(cfg.target_parent),
        "TRUNK_STAGING_DIR": os.fspath(cfg.staging_dist),
        "TRUNK_DIST_DIR": os.fspath(cfg.final_dist),
        "TRUNK_PUBLIC_URL": cfg.public_url,
    }


def spawn_hooks(cfg: RtcBuild, stage: str) -> HookHandles:
    """Start every hook configured for ``stage``; the processes run concurrently."""
    env = {**os.environ, **hook_environment(cfg)}
    hooks = []
    for hook_cfg in cfg.hooks:
        if hook_cfg.stage != stage:
            continue
        logger.info(
            "spawning hook %s at stage %s with arguments %r",
            hook_cfg.command,
            stage,
            hook_cfg.command_arguments,
        )
        try:
            process = subprocess.Popen(
                [hook_cfg.command, *hook_cfg.command_arguments], env=env
            )
        except OSError as exc:
            hooks.append(_Hook(hook_cfg.command, error=exc))
        else:
            hooks.append(_Hook(hook_cfg.command, process=process))
    return HookHandles(hooks)


def wait_hooks(handles: HookHandles) -> None:
    """Wait for all of the given hooks to finish."""
    handles.wait()