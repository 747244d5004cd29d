"""Layered configuration: config file, then environment variables, then CLI options."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, TypeVar

from bundlekit.options import (
    ConfigError,
    ConfigOptsBuild,
    ConfigOptsClean,
    ConfigOptsHook,
    ConfigOptsProxy,
    ConfigOptsServe,
    ConfigOptsTools,
    ConfigOptsWatch,
)
from bundlekit.runtime import RtcBuild, RtcClean, RtcServe, RtcWatch

T = TypeVar("T")

_DEFAULT_CONFIG_FILE = "Trunk.toml"
_ENV_PREFIXES = {
    "build": "TRUNK_BUILD_",
    "watch": "TRUNK_WATCH_",
    "serve": "TRUNK_SERVE_",
    "clean": "TRUNK_CLEAN_",
    "tools": "TRUNK_TOOLS_",
}


def _quoted(path: str | os.PathLike) -> str:
    return f'"{os.fspath(path)}"'


def _canonical(path: str | os.PathLike, message: str) -> Path:
    try:
        return Path(path).resolve(strict=True)
    except OSError as exc:
        raise ConfigError(message) from exc


def _or(value: T | None, fallback: T | None) -> T | None:
    return value if value is not None else fallback


def _merge_section(
    lesser: T | None, greater: T | None, combine: Callable[[T, T], T]
) -> T | None:
    if lesser is None:
        return greater
    if greater is None:
        return lesser
    return combine(lesser, greater)


def _merge_build(l: ConfigOptsBuild, g: ConfigOptsBuild) -> ConfigOptsBuild:
    return replace(
        g,
        target=_or(g.target, l.target),
        dist=_or(g.dist, l.dist),
        public_url=_or(g.public_url, l.public_url),
        filehash=_or(g.filehash, l.filehash),
        # Release mode can not be disabled further down the cascade.
        release=g.release or l.release,
        pattern_preload=_or(g.pattern_preload, l.pattern_preload),
        pattern_script=_or(g.pattern_script, l.pattern_script),
        pattern_params=_or(g.pattern_params, l.pattern_params),
    )


def _merge_watch(l: ConfigOptsWatch, g: ConfigOptsWatch) -> ConfigOptsWatch:
    return replace(g, watch=_or(g.watch, l.watch), ignore=_or(g.ignore, l.ignore))


def _merge_serve(l: ConfigOptsServe, g: ConfigOptsServe) -> ConfigOptsServe:
    return replace(
        g,
        proxy_backend=_or(g.proxy_backend, l.proxy_backend),
        proxy_rewrite=_or(g.proxy_rewrite, l.proxy_rewrite),
        address=_or(g.address, l.address),
        port=_or(g.port, l.port),
        proxy_ws=g.proxy_ws or l.proxy_ws,
        no_autoreload=g.no_autoreload or l.no_autoreload,
        open=g.open or l.open,
    )


def _merge_tools(l: ConfigOptsTools, g: ConfigOptsTools) -> ConfigOptsTools:
    return replace(
        g,
        sass=_or(g.sass, l.sass),
        wasm_bindgen=_or(g.wasm_bindgen, l.wasm_bindgen),
        wasm_opt=_or(g.wasm_opt, l.wasm_opt),
    )


def _merge_clean(l: ConfigOptsClean, g: ConfigOptsClean) -> ConfigOptsClean:
    return replace(g, dist=_or(g.dist, l.dist), cargo=g.cargo or l.cargo)


def _table_list(data: Mapping[str, Any], key: str, parse: Callable[[Any], T]) -> list[T] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"invalid value for `{key}`: expected an array of tables")
    return [parse(item) for item in value]


def _section(data: Mapping[str, Any], key: str, parse: Callable[[Any], T]) -> T | None:
    value = data.get(key)
    return None if value is None else parse(value)


@dataclass
class ConfigOpts:
    """All configuration options of every layer; any section may be absent."""

    build: ConfigOptsBuild | None = None
    watch: ConfigOptsWatch | None = None
    serve: ConfigOptsServe | None = None
    clean: ConfigOptsClean | None = None
    tools: ConfigOptsTools | None = None
    proxy: list[ConfigOptsProxy] | None = None
    hooks: list[ConfigOptsHook] | None = None

    @classmethod
    def rtc_build(
        cls, cli_build: ConfigOptsBuild, config: str | os.PathLike | None
    ) -> RtcBuild:
        """Runtime config for the build system from all layers."""
        layer = cls.merge(cls._file_and_env_layers(config), cls(build=cli_build))
        return RtcBuild.create(
            layer.build or ConfigOptsBuild(),
            layer.tools or ConfigOptsTools(),
            layer.hooks or [],
            False,
        )

    @classmethod
    def rtc_watch(
        cls,
        cli_build: ConfigOptsBuild,
        cli_watch: ConfigOptsWatch,
        config: str | os.PathLike | None,
    ) -> RtcWatch:
        """Runtime config for the watch system from all layers."""
        layer = cls.merge(cls._file_and_env_layers(config), cls(build=cli_build))
        layer = cls.merge(layer, cls(watch=cli_watch))
        return RtcWatch.create(
            layer.build or ConfigOptsBuild(),
            layer.watch or ConfigOptsWatch(),
            layer.tools or ConfigOptsTools(),
            layer.hooks or [],
            False,
        )

    @classmethod
    def rtc_serve(
        cls,
        cli_build: ConfigOptsBuild,
        cli_watch: ConfigOptsWatch,
        cli_serve: ConfigOptsServe,
        config: str | os.PathLike | None,
    ) -> RtcServe:
        """Runtime config for the serve system from all layers."""
        layer = cls.merge(cls._file_and_env_layers(config), cls(build=cli_build))
        layer = cls.merge(layer, cls(watch=cli_watch))
        layer = cls.merge(layer, cls(serve=cli_serve))
        return RtcServe.create(
            layer.build or ConfigOptsBuild(),
            layer.watch or ConfigOptsWatch(),
            layer.serve or ConfigOptsServe(),
            layer.tools or ConfigOptsTools(),
            layer.hooks or [],
            layer.proxy,
        )

    @classmethod
    def rtc_clean(
        cls, cli_clean: ConfigOptsClean, config: str | os.PathLike | None
    ) -> RtcClean:
        """Runtime config for the clean system from all layers."""
        layer = cls.merge(cls._file_and_env_layers(config), cls(clean=cli_clean))
        return RtcClean.create(layer.clean or ConfigOptsClean())

    @classmethod
    def full(cls, config: str | os.PathLike | None) -> ConfigOpts:
        """The configuration from the config file and environment variables."""
        return cls._file_and_env_layers(config)

    @classmethod
    def _file_and_env_layers(cls, path: str | os.PathLike | None) -> ConfigOpts:
        file_cfg = cls.from_file(path)
        try:
            env_cfg = cls.from_env()
        except ConfigError as exc:
            raise ConfigError("error reading trunk env var config") from exc
        return cls.merge(file_cfg, env_cfg)

    @classmethod
    def _from_toml(cls, data: Mapping[str, Any]) -> ConfigOpts:
        return cls(
            build=_section(data, "build", ConfigOptsBuild.from_mapping),
            watch=_section(data, "watch", ConfigOptsWatch.from_mapping),
            serve=_section(data, "serve", ConfigOptsServe.from_mapping),
            clean=_section(data, "clean", ConfigOptsClean.from_mapping),
            tools=_section(data, "tools", ConfigOptsTools.from_mapping),
            proxy=_table_list(data, "proxy", ConfigOptsProxy.from_mapping),
            hooks=_table_list(data, "hooks", ConfigOptsHook.from_mapping),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike | None) -> ConfigOpts:
        """Read a config file; relative paths in it are taken relative to the file.

        A missing file yields an empty configuration.
        """
        toml_path = Path(path) if path is not None else Path(_DEFAULT_CONFIG_FILE)
        if not toml_path.exists():
            return cls()
        if not toml_path.is_absolute():
            toml_path = _canonical(
                toml_path,
                f"error getting canonical path to Trunk config file {_quoted(toml_path)}",
            )
        try:
            raw = toml_path.read_bytes()
        except OSError as exc:
            raise ConfigError("error reading config file") from exc
        try:
            cfg = cls._from_toml(tomllib.loads(raw.decode("utf-8")))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError, ConfigError) as exc:
            raise ConfigError("error reading config file contents as TOML data") from exc

        parent = toml_path.parent
        where = _quoted(toml_path)
        if cfg.build is not None:
            target = cfg.build.target
            if target is not None and not target.is_absolute():
                cfg.build.target = _canonical(
                    parent / target,
                    f"error taking canonical path to [build].target {_quoted(target)} in {where}",
                )
            if cfg.build.dist is not None and not cfg.build.dist.is_absolute():
                cfg.build.dist = parent / cfg.build.dist
        if cfg.watch is not None:
            if cfg.watch.watch is not None:
                cfg.watch.watch = [
                    p
                    if p.is_absolute()
                    else _canonical(
                        parent / p,
                        f"error taking canonical path to [watch].watch {_quoted(p)} in {where}",
                    )
                    for p in cfg.watch.watch
                ]
            if cfg.watch.ignore is not None:
                cfg.watch.ignore = [
                    p
                    if p.is_absolute()
                    else _canonical(
                        parent / p,
                        f"error taking canonical path to [watch].ignore {_quoted(p)} in {where}",
                    )
                    for p in cfg.watch.ignore
                ]
        if cfg.clean is not None and cfg.clean.dist is not None:
            if not cfg.clean.dist.is_absolute():
                cfg.clean.dist = parent / cfg.clean.dist
        return cfg

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConfigOpts:
        """Read options from ``TRUNK_<SECTION>_<OPTION>`` environment variables."""
        if environ is None:
            environ = os.environ

        def section(prefix: str) -> dict[str, str]:
            return {
                key[len(prefix):].lower(): value
                for key, value in environ.items()
                if key.startswith(prefix)
            }

        return cls(
            build=ConfigOptsBuild.from_mapping(section(_ENV_PREFIXES["build"])),
            watch=ConfigOptsWatch.from_mapping(section(_ENV_PREFIXES["watch"])),
            serve=ConfigOptsServe.from_mapping(section(_ENV_PREFIXES["serve"])),
            clean=ConfigOptsClean.from_mapping(section(_ENV_PREFIXES["clean"])),
            tools=ConfigOptsTools.from_mapping(section(_ENV_PREFIXES["tools"])),
        )

    @classmethod
    def merge(cls, lesser: ConfigOpts, greater: ConfigOpts) -> ConfigOpts:
        """Merge two layers; values of ``greater`` take precedence."""
        return cls(
            build=_merge_section(lesser.build, greater.build, _merge_build),
            watch=_merge_section(lesser.watch, greater.watch, _merge_watch),
            serve=_merge_section(lesser.serve, greater.serve, _merge_serve),
            clean=_merge_section(lesser.clean, greater.clean, _merge_clean),
            tools=_merge_section(lesser.tools, greater.tools, _merge_tools),
            proxy=greater.proxy if greater.proxy is not None else lesser.proxy,
            hooks=greater.hooks if greater.hooks is not None else lesser.hooks,
        )