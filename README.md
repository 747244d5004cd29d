# bundlekit

bundlekit is a toolkit for building a web application bundle. It provides:

- **Layered configuration.** A TOML config file is the base layer. `TRUNK_*`
  environment variables override the file, and options given in code or on the
  command line override both.
- **Runtime configuration.** The layers are resolved into runtime settings for
  building, watching, serving and cleaning.
- **Build staging.** Each build is assembled in a `.stage` directory inside the
  output directory. The finished build replaces the old output only when every step
  has succeeded.
- **Hooks.** Commands configured for a pipeline stage are started, and the build
  waits for them to finish.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Command line

Show the configuration from the config file and the environment variables:

```
bundlekit config show
```

Remove the output directory. Use `-d`/`--dist` to name a different directory, and add
`--cargo` to also run `cargo clean`:

```
bundlekit clean
bundlekit clean --dist public --cargo
```

The general options go before the subcommand:

- `--config PATH` points at a config file. Without it, the `TRUNK_CONFIG`
  environment variable is used if it is set, and `Trunk.toml` in the working
  directory otherwise. A missing config file gives an empty configuration.
- `-v` turns on debug logging.

Errors are printed to standard error with their causes, and the command then exits
with status 1.

## Configuration

The config file can hold the tables `[build]`, `[watch]`, `[serve]`, `[clean]` and
`[tools]`. It can also hold the arrays of tables `[[proxy]]` and `[[hooks]]`. Relative
paths in the file are resolved against the directory that holds the file. Relative
watch and ignore paths, and a relative build target, must exist.

Environment variables are read as `TRUNK_<SECTION>_<OPTION>`, for example
`TRUNK_BUILD_RELEASE=true`, `TRUNK_BUILD_PUBLIC_URL=/app/` or
`TRUNK_SERVE_PORT=9000`. The sections are `BUILD`, `WATCH`, `SERVE`, `CLEAN` and
`TOOLS`. Boolean values are `true` or `false`. List values, such as watch paths, are
separated by commas.

## Library use

`bundlekit.layers.ConfigOpts` combines the layers into runtime configs. The option
classes it uses are in `bundlekit.options`:

```python
from bundlekit.layers import ConfigOpts
from bundlekit.options import ConfigOptsBuild

# Resolves index.html in the working directory and creates its dist/ directory.
cfg = ConfigOpts.rtc_build(ConfigOptsBuild(release=True), None)
print(cfg.final_dist, cfg.public_url, cfg.filehash)
```

`ConfigOpts` provides the following:

- `rtc_build`, `rtc_watch`, `rtc_serve` and `rtc_clean` return the runtime classes
  from `bundlekit.runtime`: `RtcBuild`, `RtcWatch`, `RtcServe` and `RtcClean`.
- `full` returns the file and environment layers merged together.
- `from_file` and `from_env` each read a single layer.
- `merge(lesser, greater)` combines two layers, and values in `greater` win. The flags
  `release`, `open`, `no_autoreload`, `cargo` and `proxy_ws` stay on once any layer
  has set them. The `proxy` and `hooks` lists are replaced as a whole, never merged.

`RtcBuild` resolves these defaults:

- The target is `index.html`.
- The public URL is `/`.
- File hashing is on.
- The output directory is `dist` next to the target.

Combining `all_features` with `no_default_features` or `features` raises
`ConfigError`. `RtcServe` serves on `127.0.0.1:8080` unless it is configured
otherwise.

`bundlekit.build.BuildSystem(cfg, pipeline).build()` runs a build in four steps:

1. It prepares the staging directory.
2. It calls `pipeline(cfg)`, which is expected to write its output into
   `cfg.staging_dist`.
3. It empties the output directory.
4. It moves the staged files into the output directory.

`bundlekit.hooks.spawn_hooks(cfg, stage)` starts every hook whose `stage` matches.
`wait_hooks(handles)` waits for them and raises `CommandError` when a hook fails. Hooks
receive the following environment variables:

- `TRUNK_PROFILE`
- `TRUNK_HTML_FILE`
- `TRUNK_SOURCE_DIR`
- `TRUNK_STAGING_DIR`
- `TRUNK_DIST_DIR`
- `TRUNK_PUBLIC_URL`

`bundlekit.hooks.hook_environment(cfg)` returns the same variables as a dictionary.

`bundlekit.manifest.load_cargo_metadata(path)` runs `cargo metadata` on a
`Cargo.toml` and returns the project's root package.

`bundlekit.common` provides these utilities:

- `parse_public_url` makes sure a URL starts and ends with `/`.
- `remove_dir_all` deletes a directory tree. A missing directory is not an error.
- `copy_dir_recursive` copies the contents of one directory into another.
- `path_exists` and `is_executable` check a path.
- `strip_prefix` makes a path relative to the working directory.
- `run_command` runs a program and raises `CommandError` on a failure status.

## What is not included

The package has no asset pipeline of its own. `BuildSystem` runs whatever pipeline
callable it is given. There are no `build`, `watch` or `serve` commands. There is no
file watcher, development server or proxy. The watch, serve and proxy settings are
parsed and resolved but nothing acts on them. Tools are not downloaded, so
`clean` has no option to remove a tool cache.