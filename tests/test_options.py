import ipaddress
from pathlib import Path

import pytest

from bundlekit.options import (
    ConfigError,
    ConfigOptsBuild,
    ConfigOptsClean,
    ConfigOptsHook,
    ConfigOptsProxy,
    ConfigOptsServe,
    ConfigOptsTools,
    ConfigOptsWatch,
    parse_uri,
)


@pytest.mark.parametrize(
    "uri", ["http://localhost:9000/api/", "/api/", "localhost:8080", "*", "https://[::1]:443"]
)
def test_parse_uri_accepts(uri):
    assert parse_uri(uri) == uri


@pytest.mark.parametrize(
    "uri", ["", "http://", "not a uri", "localhost:notaport", "host/path", "1http://x"]
)
def test_parse_uri_rejects(uri):
    with pytest.raises(ConfigError):
        parse_uri(uri)


def test_parse_uri_rejects_non_string():
    with pytest.raises(ConfigError):
        parse_uri(42)


def test_build_from_typed_table():
    opts = ConfigOptsBuild.from_mapping(
        {
            "target": "index.html",
            "release": True,
            "dist": "out",
            "public_url": "/app/",
            "filehash": False,
            "pattern_params": {"greeting": "@greeting.html"},
            "unknown_key": 1,
        }
    )
    assert opts.target == Path("index.html")
    assert opts.release is True
    assert opts.dist == Path("out")
    assert opts.public_url == "/app/"
    assert opts.filehash is False
    assert opts.pattern_params == {"greeting": "@greeting.html"}


def test_build_defaults_when_empty():
    assert ConfigOptsBuild.from_mapping({}) == ConfigOptsBuild()
    opts = ConfigOptsBuild.from_mapping({})
    assert opts.release is False and opts.filehash is None and opts.target is None


def test_build_from_env_strings():
    opts = ConfigOptsBuild.from_mapping(
        {"release": "true", "filehash": "false", "all_features": "false", "features": "a,b"}
    )
    assert opts.release is True
    assert opts.filehash is False
    assert opts.all_features is False
    assert opts.features == "a,b"


def test_build_rejects_bad_bool():
    with pytest.raises(ConfigError, match="release"):
        ConfigOptsBuild.from_mapping({"release": "yes"})


def test_build_rejects_bad_params():
    with pytest.raises(ConfigError, match="pattern_params"):
        ConfigOptsBuild.from_mapping({"pattern_params": {"k": 1}})


def test_non_mapping_rejected():
    with pytest.raises(ConfigError):
        ConfigOptsBuild.from_mapping(["release"])


def test_watch_from_list_and_env_string():
    typed = ConfigOptsWatch.from_mapping({"watch": ["src", "assets"], "ignore": ["tmp"]})
    assert typed.watch == [Path("src"), Path("assets")]
    assert typed.ignore == [Path("tmp")]
    env = ConfigOptsWatch.from_mapping({"watch": "src,assets"})
    assert env.watch == typed.watch
    assert env.ignore is None


def test_serve_from_env_strings():
    opts = ConfigOptsServe.from_mapping(
        {
            "address": "127.0.0.1",
            "port": "8080",
            "open": "true",
            "proxy_backend": "http://localhost:9000/api/",
            "proxy_ws": "true",
        }
    )
    assert opts.address == ipaddress.ip_address("127.0.0.1")
    assert opts.port == 8080
    assert opts.open is True
    assert opts.proxy_backend == "http://localhost:9000/api/"
    assert opts.proxy_ws is True
    assert opts.no_autoreload is False


@pytest.mark.parametrize(
    "data",
    [
        {"port": 70000},
        {"port": "eighty"},
        {"port": True},
        {"address": "not-an-ip"},
        {"proxy_backend": "http://"},
    ],
)
def test_serve_rejects_bad_values(data):
    with pytest.raises(ConfigError, match=next(iter(data))):
        ConfigOptsServe.from_mapping(data)


def test_clean_options():
    opts = ConfigOptsClean.from_mapping({"dist": "out", "cargo": True})
    assert opts.dist == Path("out")
    assert opts.cargo is True
    assert ConfigOptsClean.from_mapping({}) == ConfigOptsClean()


def test_tools_options():
    opts = ConfigOptsTools.from_mapping({"sass": "1.54.9", "wasm_opt": "version_110"})
    assert opts.sass == "1.54.9"
    assert opts.wasm_opt == "version_110"
    assert opts.wasm_bindgen is None


def test_proxy_options():
    proxy = ConfigOptsProxy.from_mapping(
        {"backend": "ws://localhost:9000/ws", "rewrite": "/ws/", "ws": True}
    )
    assert proxy.backend == "ws://localhost:9000/ws"
    assert proxy.rewrite == "/ws/"
    assert proxy.ws is True
    assert proxy.insecure is False


def test_proxy_requires_backend():
    with pytest.raises(ConfigError, match="missing field `backend`"):
        ConfigOptsProxy.from_mapping({"rewrite": "/api/"})


def test_proxy_rejects_bad_backend():
    with pytest.raises(ConfigError, match="backend"):
        ConfigOptsProxy.from_mapping({"backend": "bad uri"})


def test_hook_options():
    hook = ConfigOptsHook.from_mapping(
        {"stage": "build", "command": "echo", "command_arguments": ["hello", "world"]}
    )
    assert hook.stage == "build"
    assert hook.command == "echo"
    assert hook.command_arguments == ["hello", "world"]
    bare = ConfigOptsHook.from_mapping({"stage": "build", "command": "ls"})
    assert bare.command_arguments == []


def test_hook_requires_command():
    with pytest.raises(ConfigError, match="missing field `command`"):
        ConfigOptsHook.from_mapping({"stage": "build"})


def test_hook_rejects_non_string_arguments():
    with pytest.raises(ConfigError, match="command_arguments"):
        ConfigOptsHook.from_mapping({"stage": "build", "command": "ls", "command_arguments": [1]})