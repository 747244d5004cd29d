"""The build system: staging, running the pipeline and applying the result."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from bundlekit.common import BUILDING, ERROR, SUCCESS, remove_dir_all
from bundlekit.options import STAGE_DIR
from bundlekit.runtime import RtcBuild

logger = logging.getLogger(__name__)


class BuildSystem:
    """Drives a build: prepares the staging dir, runs the pipeline, moves output to dist.

    ``pipeline`` is called with the runtime config and is expected to write its
    output into ``cfg.staging_dist``.
    """

    def __init__(self, cfg: RtcBuild, pipeline: Callable[[RtcBuild], object]) -> None:
        self.cfg = cfg
        self.pipeline = pipeline

    def build(self) -> None:
        """Run a full build, logging and re-raising any failure."""
        logger.info("%s starting build", BUILDING)
        try:
            self._do_build()
        except Exception as exc:
            logger.error("%s error\n%r", ERROR, exc)
            raise
        logger.info("%s success", SUCCESS)

    def _do_build(self) -> None:
        try:
            os.makedirs(self.cfg.final_dist, exist_ok=True)
        except OSError as exc:
            raise RuntimeError("error creating build environment directory: dist") from exc
        try:
            self._prepare_staging_dist()
        except OSError as exc:
            raise RuntimeError("error preparing build environment") from exc
        try:
            self.pipeline(self.cfg)
        except Exception as exc:
            raise RuntimeError("error from HTML pipeline") from exc
        try:
            self._finalize_dist()
        except OSError as exc:
            raise RuntimeError("error applying built distribution") from exc

    def _prepare_staging_dist(self) -> None:
        remove_dir_all(self.cfg.staging_dist)
        os.makedirs(self.cfg.staging_dist, exist_ok=True)

    def _finalize_dist(self) -> None:
        logger.info("applying new distribution")
        self._clean_final()
        self._move_stage_to_final()
        os.rmdir(self.cfg.staging_dist)

    def _move_stage_to_final(self) -> None:
        with os.scandir(self.cfg.staging_dist) as entries:
            for entry in list(entries):
                os.rename(entry.path, self.cfg.final_dist / entry.name)

    def _clean_final(self) -> None:
        with os.scandir(self.cfg.final_dist) as entries:
            for entry in list(entries):
                if entry.name == STAGE_DIR:
                    continue
                if entry.is_dir(follow_symlinks=False):
                    remove_dir_all(entry.path)
                elif entry.is_symlink() or entry.is_file(follow_symlinks=False):
                    os.unlink(entry.path)