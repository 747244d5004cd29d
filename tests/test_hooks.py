import sys

import pytest

from bundlekit.common import CommandError
from bundlekit.hooks import hook_environment, spawn_hooks, wait_hooks
from bundlekit.options import ConfigOptsBuild, ConfigOptsHook, ConfigOptsTools
from bundlekit.runtime import RtcBuild


def _cfg(root, hooks, release=False):
    (root / "index.html").write_text("<html></html>")
    return RtcBuild.create(
        ConfigOptsBuild(target=root / "index.html", release=release),
        ConfigOptsTools(),
        hooks,
        False,
    )


def _py(code, *args, stage="build"):
    return ConfigOptsHook(
        stage=stage, command=sys.executable, command_arguments=["-c", code, *args]
    )


def test_hook_environment(tmp_path):
    root = tmp_path.resolve()
    cfg = _cfg(root, [], release=True)
    env = hook_environment(cfg)
    assert env == {
        "TRUNK_PROFILE": "release",
        "TRUNK_HTML_FILE": str(root / "index.html"),
        "TRUNK_SOURCE_DIR": str(root),
        "TRUNK_STAGING_DIR": str(root / "dist" / ".stage"),
        "TRUNK_DIST_DIR": str(root / "dist"),
        "TRUNK_PUBLIC_URL": "/",
    }


def test_debug_profile(tmp_path):
    cfg = _cfg(tmp_path.resolve(), [])
    assert hook_environment(cfg)["TRUNK_PROFILE"] == "debug"


def test_spawn_filters_by_stage(tmp_path):
    hooks = [
        _py("pass", stage="pre_build"),
        _py("pass", stage="build"),
        _py("pass", stage="build"),
    ]
    cfg = _cfg(tmp_path.resolve(), hooks)
    handles = spawn_hooks(cfg, "build")
    assert len(handles) == 2
    wait_hooks(handles)
    assert len(spawn_hooks(cfg, "post_build")) == 0


def test_hook_receives_environment(tmp_path):
    out = tmp_path / "out.txt"
    code = "import os, sys; open(sys.argv[1], 'w').write(os.environ['TRUNK_PUBLIC_URL'])"
    cfg = _cfg(tmp_path.resolve(), [_py(code, str(out))])
    wait_hooks(spawn_hooks(cfg, "build"))
    assert out.read_text() == "/"


def test_failing_hook(tmp_path):
    cfg = _cfg(tmp_path.resolve(), [_py("import sys; sys.exit(3)")])
    with pytest.raises(CommandError, match="returned a bad status"):
        wait_hooks(spawn_hooks(cfg, "build"))


def test_missing_command(tmp_path):
    missing = str(tmp_path / "no-such-program")
    hook = ConfigOptsHook(stage="build", command=missing)
    cfg = _cfg(tmp_path.resolve(), [hook])
    handles = spawn_hooks(cfg, "build")
    assert handles.commands == [missing]
    with pytest.raises(CommandError, match="error spawning hook call for"):
        wait_hooks(handles)