"""Access to the metadata of a cargo project."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bundlekit.common import CommandError


def _root_package(metadata: dict[str, Any]) -> dict[str, Any] | None:
    packages = metadata.get("packages") or []
    resolve = metadata.get("resolve")
    if resolve is not None:
        root = resolve.get("root")
        if root is None:
            return None
        return next((pkg for pkg in packages if pkg.get("id") == root), None)
    workspace_root = metadata.get("workspace_root")
    if workspace_root is None:
        return None
    root_manifest = Path(workspace_root) / "Cargo.toml"
    return next(
        (
            pkg
            for pkg in packages
            if "manifest_path" in pkg and Path(pkg["manifest_path"]) == root_manifest
        ),
        None,
    )


@dataclass(frozen=True)
class CargoMetadata:
    """A cargo project's metadata together with its root package."""

    metadata: dict[str, Any]
    package: dict[str, Any]
    manifest_path: str

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> CargoMetadata:
        """Build an instance from decoded ``cargo metadata`` output."""
        package = _root_package(metadata)
        if package is None:
            raise LookupError("could not find root package of the target crate")
        return cls(
            metadata=metadata,
            package=package,
            manifest_path=str(package["manifest_path"]),
        )


def load_cargo_metadata(manifest: str | os.PathLike) -> CargoMetadata:
    """Run ``cargo metadata`` for the given Cargo.toml and load the result."""
    cargo = os.environ.get("CARGO", "cargo")
    argv = [
        cargo,
        "metadata",
        "--format-version",
        "1",
        "--manifest-path",
        os.fspath(manifest),
    ]
    try:
        completed = subprocess.run(argv, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise CommandError("error getting cargo metadata") from exc
    if completed.returncode != 0:
        raise CommandError(f"error getting cargo metadata: {completed.stderr.strip()}")
    try:
        metadata = json.loads(completed.stdout)
    except json.JSONDecodeError as exc:
        raise CommandError("error parsing cargo metadata output") from exc
    return CargoMetadata.from_metadata(metadata)