[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bundlekit"
version = "0.1.0"
description = "Layered configuration, build staging and hook running for bundling web applications"
requires-python = ">=3.11"
dependencies = []
keywords = ["bundler", "build", "wasm", "web", "assets", "configuration", "hooks"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bundlekit = "bundlekit.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bundlekit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
