"""Configuration option models read from config files, the environment and the CLI."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar
from urllib.parse import SplitResult, urlsplit

DIST_DIR = "dist"
"""Default directory for final build artifacts."""
STAGE_DIR = ".stage"
"""Directory used to stage artifacts during an active build."""

T = TypeVar("T")


class ConfigError(ValueError):
    """Configuration data is malformed."""


_FORBIDDEN_URI_CHARS = frozenset('"<>\\^`')
_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")


def _check_port(parts: SplitResult) -> None:
    try:
        parts.port
    except ValueError as exc:
        raise ConfigError("invalid port") from exc


def parse_uri(val: Any) -> str:
    """Validate a URI string and return it."""
    if not isinstance(val, str):
        raise ConfigError("invalid type: expected a URI string")
    if not val:
        raise ConfigError("empty string")
    if any(ord(c) <= 0x20 or ord(c) >= 0x7F or c in _FORBIDDEN_URI_CHARS for c in val):
        raise ConfigError("invalid uri character")
    if val == "*" or val.startswith("/"):
        return val
    scheme, sep, _ = val.partition("://")
    if sep:
        if not _SCHEME_RE.fullmatch(scheme):
            raise ConfigError("invalid scheme")
        parts = urlsplit(val)
        if not parts.netloc:
            raise ConfigError("invalid format")
        _check_port(parts)
        return val
    if any(c in val for c in "/?#"):
        raise ConfigError("invalid format")
    parts = urlsplit("//" + val)
    if not parts.hostname:
        raise ConfigError("invalid format")
    _check_port(parts)
    return val


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value in ("true", "false"):
        return value == "true"
    raise ConfigError("expected a boolean")


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise ConfigError("expected a string")


def _to_path(value: Any) -> Path:
    return Path(_to_str(value))


def _to_list(value: Any, item: Callable[[Any], T]) -> list[T]:
    if isinstance(value, str):
        return [item(part) for part in value.split(",")]
    if isinstance(value, (list, tuple)):
        return [item(part) for part in value]
    raise ConfigError("expected a sequence")


def _to_paths(value: Any) -> list[Path]:
    return _to_list(value, _to_path)


def _to_strs(value: Any) -> list[str]:
    return _to_list(value, _to_str)


def _to_port(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError("expected a port number")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as exc:
            raise ConfigError("expected a port number") from exc
    if not isinstance(value, int) or not 0 <= value <= 65535:
        raise ConfigError("expected a port number between 0 and 65535")
    return value


def _to_ip(value: Any) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    try:
        return ipaddress.ip_address(_to_str(value))
    except ValueError as exc:
        raise ConfigError("invalid IP address syntax") from exc


def _to_str_map(value: Any) -> dict[str, str]:
    if isinstance(value, Mapping) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        return dict(value)
    raise ConfigError("expected a table of strings")


def _table(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigError("expected a table")
    return data


def _optional(data: Mapping[str, Any], key: str, convert: Callable[[Any], T]) -> T | None:
    value = data.get(key)
    if value is None:
        return None
    try:
        return convert(value)
    except ConfigError as exc:
        raise ConfigError(f"invalid value for `{key}`: {exc}") from None


def _required(data: Mapping[str, Any], key: str, convert: Callable[[Any], T]) -> T:
    if data.get(key) is None:
        raise ConfigError(f"missing field `{key}`")
    return _optional(data, key, convert)  # type: ignore[return-value]


def _flag(data: Mapping[str, Any], key: str) -> bool:
    return bool(_optional(data, key, _to_bool))


@dataclass
class ConfigOptsBuild:
    """Options for the build system."""

    target: Path | None = None
    release: bool = False
    dist: Path | None = None
    public_url: str | None = None
    no_default_features: bool = False
    all_features: bool = False
    features: str | None = None
    filehash: bool | None = None
    pattern_script: str | None = None
    pattern_preload: str | None = None
    pattern_params: dict[str, str] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsBuild:
        """Read options from a config table or environment mapping."""
        data = _table(data)
        return cls(
            target=_optional(data, "target", _to_path),
            release=_flag(data, "release"),
            dist=_optional(data, "dist", _to_path),
            public_url=_optional(data, "public_url", _to_str),
            no_default_features=_flag(data, "no_default_features"),
            all_features=_flag(data, "all_features"),
            features=_optional(data, "features", _to_str),
            filehash=_optional(data, "filehash", _to_bool),
            pattern_script=_optional(data, "pattern_script", _to_str),
            pattern_preload=_optional(data, "pattern_preload", _to_str),
            pattern_params=_optional(data, "pattern_params", _to_str_map),
        )


@dataclass
class ConfigOptsWatch:
    """Options for the watch system."""

    watch: list[Path] | None = None
    ignore: list[Path] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsWatch:
        """Read options from a config table or environment mapping."""
        data = _table(data)
        return cls(
            watch=_optional(data, "watch", _to_paths),
            ignore=_optional(data, "ignore", _to_paths),
        )


@dataclass
class ConfigOptsServe:
    """Options for the serve system."""

    address: ipaddress.IPv4Address | ipaddress.IPv6Address | None = None
    port: int | None = None
    open: bool = False
    proxy_backend: str | None = None
    proxy_rewrite: str | None = None
    proxy_ws: bool = False
    proxy_insecure: bool = False
    no_autoreload: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsServe:
        """Read options from a config table or environment mapping."""
        data = _table(data)
        return cls(
            address=_optional(data, "address", _to_ip),
            port=_optional(data, "port", _to_port),
            open=_flag(data, "open"),
            proxy_backend=_optional(data, "proxy_backend", parse_uri),
            proxy_rewrite=_optional(data, "proxy_rewrite", _to_str),
            proxy_ws=_flag(data, "proxy_ws"),
            proxy_insecure=_flag(data, "proxy_insecure"),
            no_autoreload=_flag(data, "no_autoreload"),
        )


@dataclass
class ConfigOptsClean:
    """Options for the clean system."""

    dist: Path | None = None
    cargo: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsClean:
        """Read options from a config table or environment mapping."""
        data = _table(data)
        return cls(dist=_optional(data, "dist", _to_path), cargo=_flag(data, "cargo"))


@dataclass
class ConfigOptsTools:
    """Versions of the external tools to use."""

    sass: str | None = None
    wasm_bindgen: str | None = None
    wasm_opt: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsTools:
        """Read options from a config table or environment mapping."""
        data = _table(data)
        return cls(
            sass=_optional(data, "sass", _to_str),
            wasm_bindgen=_optional(data, "wasm_bindgen", _to_str),
            wasm_opt=_optional(data, "wasm_opt", _to_str),
        )


@dataclass
class ConfigOptsProxy:
    """A proxy definition; only read from the config file."""

    backend: str
    rewrite: str | None = None
    ws: bool = False
    insecure: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsProxy:
        """Read a proxy definition from a config table."""
        data = _table(data)
        return cls(
            backend=_required(data, "backend", parse_uri),
            rewrite=_optional(data, "rewrite", _to_str),
            ws=_flag(data, "ws"),
            insecure=_flag(data, "insecure"),
        )


@dataclass
class ConfigOptsHook:
    """A command run at a given stage of the build."""

    stage: str
    command: str
    command_arguments: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigOptsHook:
        """Read a hook definition from a config table."""
        data = _table(data)
        return cls(
            stage=_required(data, "stage", _to_str),
            command=_required(data, "command", _to_str),
            command_arguments=_optional(data, "command_arguments", _to_strs) or [],
        )