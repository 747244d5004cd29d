import pytest

from bundlekit.build import BuildSystem
from bundlekit.options import ConfigOptsBuild, ConfigOptsTools
from bundlekit.runtime import RtcBuild


@pytest.fixture
def cfg(tmp_path):
    root = tmp_path.resolve()
    (root / "index.html").write_text("<html></html>")
    return RtcBuild.create(
        ConfigOptsBuild(target=root / "index.html"), ConfigOptsTools(), [], False
    )


def _write_output(cfg):
    (cfg.staging_dist / "index.html").write_text("built")
    assets = cfg.staging_dist / "assets"
    assets.mkdir()
    (assets / "app.js").write_text("js")


def test_build_moves_stage_to_dist(cfg):
    (cfg.final_dist / "old.txt").write_text("stale")
    (cfg.final_dist / "olddir").mkdir()
    (cfg.final_dist / "olddir" / "x").write_text("stale")

    BuildSystem(cfg, _write_output).build()

    assert sorted(p.name for p in cfg.final_dist.iterdir()) == ["assets", "index.html"]
    assert (cfg.final_dist / "index.html").read_text() == "built"
    assert (cfg.final_dist / "assets" / "app.js").read_text() == "js"
    assert not cfg.staging_dist.exists()


def test_pipeline_sees_fresh_staging_dir(cfg):
    cfg.staging_dist.mkdir()
    (cfg.staging_dist / "leftover").write_text("old")
    seen = []

    def pipeline(c):
        seen.append(sorted(p.name for p in c.staging_dist.iterdir()))

    BuildSystem(cfg, pipeline).build()
    assert seen == [[]]
    assert list(cfg.final_dist.iterdir()) == []


def test_build_recreates_missing_dist(cfg):
    cfg.final_dist.rmdir()
    BuildSystem(cfg, _write_output).build()
    assert (cfg.final_dist / "index.html").read_text() == "built"


def test_pipeline_failure_keeps_dist(cfg):
    (cfg.final_dist / "old.txt").write_text("stale")

    def pipeline(c):
        raise ValueError("boom")

    with pytest.raises(RuntimeError, match="error from HTML pipeline") as info:
        BuildSystem(cfg, pipeline).build()
    assert isinstance(info.value.__cause__, ValueError)
    assert (cfg.final_dist / "old.txt").read_text() == "stale"


def test_repeated_builds(cfg):
    system = BuildSystem(cfg, _write_output)
    system.build()
    system.build()
    assert sorted(p.name for p in cfg.final_dist.iterdir()) == ["assets", "index.html"]