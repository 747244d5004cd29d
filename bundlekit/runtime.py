"""Runtime configuration assembled from the layered configuration options."""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass, field
from pathlib import Path

from bundlekit.options import (
    DIST_DIR,
    STAGE_DIR,
    ConfigError,
    ConfigOptsBuild,
    ConfigOptsClean,
    ConfigOptsHook,
    ConfigOptsProxy,
    ConfigOptsServe,
    ConfigOptsTools,
    ConfigOptsWatch,
)


@dataclass(frozen=True)
class AllFeatures:
    """Build with cargo's ``--all-features`` flag."""


@dataclass(frozen=True)
class CustomFeatures:
    """An explicit, possibly empty, list of cargo features."""

    features: str | None = None
    no_default_features: bool = False


Features = AllFeatures | CustomFeatures


def _quoted(path: str | os.PathLike) -> str:
    return f'"{os.fspath(path)}"'


def _canonical(path: str | os.PathLike, message: str) -> Path:
    try:
        return Path(path).resolve(strict=True)
    except OSError as exc:
        raise ConfigError(message) from exc


@dataclass(frozen=True)
class RtcBuild:
    """Runtime config for the build system."""

    target: Path
    target_parent: Path
    release: bool
    public_url: str
    filehash: bool
    final_dist: Path
    staging_dist: Path
    cargo_features: Features
    tools: ConfigOptsTools
    hooks: list[ConfigOptsHook]
    inject_autoloader: bool
    pattern_script: str | None = None
    pattern_preload: str | None = None
    pattern_params: dict[str, str] | None = None

    @classmethod
    def create(
        cls,
        opts: ConfigOptsBuild,
        tools: ConfigOptsTools,
        hooks: list[ConfigOptsHook],
        inject_autoloader: bool,
    ) -> RtcBuild:
        """Resolve build options into a runtime config, creating the dist dir if needed."""
        pre_target = opts.target if opts.target is not None else Path("index.html")
        target = _canonical(
            pre_target,
            f"error getting canonical path to source HTML file {_quoted(pre_target)}",
        )
        target_parent = target.parent

        final_dist = Path(opts.dist) if opts.dist is not None else target_parent / DIST_DIR
        if not final_dist.exists():
            try:
                final_dist.mkdir()
            except OSError as exc:
                raise ConfigError(
                    f"error creating final dist directory {_quoted(final_dist)}"
                ) from exc
        final_dist = _canonical(final_dist, "error taking canonical path to dist dir")
        staging_dist = final_dist / STAGE_DIR

        if opts.all_features and (opts.no_default_features or opts.features is not None):
            raise ConfigError(
                "Cannot combine --all-features with --no-default-features and/or --features"
            )
        cargo_features: Features
        if opts.all_features:
            cargo_features = AllFeatures()
        else:
            cargo_features = CustomFeatures(
                features=opts.features, no_default_features=opts.no_default_features
            )

        return cls(
            target=target,
            target_parent=target_parent,
            release=opts.release,
            public_url=opts.public_url if opts.public_url is not None else "/",
            filehash=opts.filehash if opts.filehash is not None else True,
            final_dist=final_dist,
            staging_dist=staging_dist,
            cargo_features=cargo_features,
            tools=tools,
            hooks=list(hooks),
            inject_autoloader=inject_autoloader,
            pattern_script=opts.pattern_script,
            pattern_preload=opts.pattern_preload,
            pattern_params=opts.pattern_params,
        )


@dataclass(frozen=True)
class RtcWatch:
    """Runtime config for the watch system."""

    build: RtcBuild
    paths: list[Path] = field(default_factory=list)
    ignored_paths: list[Path] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        build_opts: ConfigOptsBuild,
        opts: ConfigOptsWatch,
        tools: ConfigOptsTools,
        hooks: list[ConfigOptsHook],
        inject_autoloader: bool,
    ) -> RtcWatch:
        """Resolve watch options; watch paths default to the target's parent dir."""
        build = RtcBuild.create(build_opts, tools, hooks, inject_autoloader)

        paths = [
            _canonical(path, f"invalid watch path provided: {_quoted(path)}")
            for path in opts.watch or []
        ]
        if not paths:
            paths.append(build.target_parent)

        ignored_paths = [
            _canonical(path, f"invalid ignore path provided: {_quoted(path)}")
            for path in opts.ignore or []
        ]
        ignored_paths.append(build.final_dist)

        return cls(build=build, paths=paths, ignored_paths=ignored_paths)


@dataclass(frozen=True)
class RtcServe:
    """Runtime config for the serve system."""

    watch: RtcWatch
    address: ipaddress.IPv4Address | ipaddress.IPv6Address
    port: int
    open: bool
    proxy_backend: str | None
    proxy_rewrite: str | None
    proxy_ws: bool
    proxy_insecure: bool
    proxies: list[ConfigOptsProxy] | None
    no_autoreload: bool

    @classmethod
    def create(
        cls,
        build_opts: ConfigOptsBuild,
        watch_opts: ConfigOptsWatch,
        opts: ConfigOptsServe,
        tools: ConfigOptsTools,
        hooks: list[ConfigOptsHook],
        proxies: list[ConfigOptsProxy] | None,
    ) -> RtcServe:
        """Resolve serve options; the autoloader is injected unless auto-reload is off."""
        watch = RtcWatch.create(build_opts, watch_opts, tools, hooks, not opts.no_autoreload)
        return cls(
            watch=watch,
            address=(
                opts.address
                if opts.address is not None
                else ipaddress.IPv4Address("127.0.0.1")
            ),
            port=opts.port if opts.port is not None else 8080,
            open=opts.open,
            proxy_backend=opts.proxy_backend,
            proxy_rewrite=opts.proxy_rewrite,
            proxy_ws=opts.proxy_ws,
            proxy_insecure=opts.proxy_insecure,
            proxies=proxies,
            no_autoreload=opts.no_autoreload,
        )


@dataclass(frozen=True)
class RtcClean:
    """Runtime config for the clean system."""

    dist: Path
    cargo: bool

    @classmethod
    def create(cls, opts: ConfigOptsClean) -> RtcClean:
        """Resolve clean options; dist defaults to ``dist``."""
        return cls(
            dist=Path(opts.dist) if opts.dist is not None else Path(DIST_DIR),
            cargo=opts.cargo,
        )