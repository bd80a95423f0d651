# toba

`toba` is a library of building blocks for bootstrapping a local WordPress
project that runs on Lando. It provides:

* a shared workflow `Context` (`toba.context`) that holds the project
  configuration, the derived project paths, a logger and a command runner;
* a `Pipeline` (`toba.pipeline`) that runs steps in sequential or parallel
  stages and can record how long each step took;
* command runners (`toba.runner`) that start external programs without a shell;
* checks for the external tools the workflow needs (`toba.doctor`);
* starter-data preparation (`toba.sourcedata`, `toba.ssh`). It uses either
  the backups found in an existing project directory, or a database dump,
  plugins archive and uploads archive made on a remote WordPress install over
  SSH and downloaded with `scp`;
* a set of pipeline steps (`toba.steps`).

## Installation

```
pip install .
```

The package has no third-party runtime dependencies. The full workflow expects
these tools on `PATH`: `git`, `node`, `npm`, `lando`, `docker`, `ssh`, `scp`
and `zip`.

## Checking the environment

```python
from toba.doctor import full_workflow_checks, run_checks

for result in run_checks(full_workflow_checks()):
    status = "ok" if result.error is None else str(result.error)
    print(f"{result.check.name}: {status}")
```

`check_binary(name)` raises `FileNotFoundError` when `name` is not on `PATH`.

## Context and pipeline

```python
from toba.context import ProjectConfig, new_context
from toba.pipeline import Pipeline, Stage
from toba.steps import (
    ClearImportedCachesStep,
    DoctorStep,
    PrepareStarterDataStep,
    ProjectDirStep,
    StartLandoStep,
)

config = ProjectConfig(
    name="demo",
    domain="demo.lndo.site",
    ssh_target="user@192.168.0.1 -p 22",
    remote_wordpress_root="www/example.com",
    dry_run=True,
)
ctx = new_context("/path/to/projects", config)

pipeline = Pipeline(explicit_stages=[
    Stage(name="doctor", steps=[DoctorStep()]),
    Stage(name="source", steps=[PrepareStarterDataStep()]),
    Stage(name="layout", steps=[ProjectDirStep()]),
    Stage(name="lando", steps=[StartLandoStep()]),
    Stage(name="caches", steps=[ClearImportedCachesStep()]),
])

for stage in pipeline.stages():
    pipeline.run_sequential_stage(ctx, stage)
```

`new_context(base_dir, config, logger=None, runner=None)` uses a
`ConsoleLogger` that writes to standard output and an `ExecRunner` when none
is given. The project paths (`root`, `app_dir`, `config_dir`, `wp_content`,
`plugins`, `themes`, `database_sql`) come from `ProjectPaths.from_base`.

A step is any object with `name()` and `run(ctx)` methods.
`Pipeline.stages()` returns `explicit_stages` when it is set. Otherwise it
returns one single-step stage for each entry in `steps`.
`run_sequential_stage` stops at the first failing step and re-raises its
exception. `run_parallel_stage` runs every step of the stage in a thread
and raises the first failure in stage order. Failures are logged through the
logger; a `CodedError`, or an error caused by one, is logged with
`error_code`. When `recorder` is set, its `record_step_timing(timing)` gets
a `StepTiming` for every step.

With `dry_run=True` the steps log what they would do and run no commands.
`DoctorStep` is the exception: it always looks the tools up on `PATH`, and it
raises `RuntimeError` when any of them is missing.

## Steps

* `DoctorStep`: checks every tool from `full_workflow_checks()`.
* `PrepareStarterDataStep(scan=None)`: fills `ctx.starter_data` (see below).
* `ProjectDirStep`: creates the project root, `app` and `config`
  directories. It raises `ProjectDirExistsError` if the root already exists.
  When the context reuses an existing backup folder, it creates only `app`
  and `config`. In that case it refuses if `.lando.yml`, `app` or `config`
  is already present.
* `StartLandoStep`: runs `lando start` through `toba.lando.start`, which
  raises `CodedError` with code `LANDO_START_FAILED` on failure.
* `ClearImportedCachesStep`: removes `wp-content/cache` and runs
  `lando wp cache flush`.

## Starter data

`toba.sourcedata.prepare(ctx, scan)` decides where the starter data comes
from:

* If the project root exists as a directory, `scan(root)` must return a
  `BackupSelection` (database, plugins, uploads, others, themes). The
  selection needs a database, plugins, uploads and themes. The paths are
  copied into `ctx.starter_data` in `local` mode, and
  `ctx.use_existing_project_dir` is set.
* If the project root does not exist, `ctx.config.ssh_target` must have the
  form `user@host -p port`, and `ctx.config.remote_wordpress_root` must be set.
  A shell script then exports the database and zips the plugins and uploads
  on the host. The three files are downloaded concurrently into a temporary
  directory, and the remote copies are removed afterwards. A failed cleanup
  only logs a warning.

Errors are raised as `SourceDataError`, or `ValueError` for a malformed SSH
target or home URL.

## Command runners

`toba.runner.ExecRunner` runs programs directly, without a shell, in the
given directory with `PWD` set to it. `run` raises `CommandError` when the
command fails; the message includes the trimmed stderr, or stdout if stderr
is empty. `capture_output` returns stdout. On failure it raises
`CommandError` whose `output` holds stderr, or stdout if stderr is empty.
`toba.runner.NoopRunner` accepts every command without running it and records
each call in `calls`.

## What this package does not do

* It has no command-line program. Everything is used from Python.
* It does not scan a project directory for Updraft backup files itself. Pass
  a `scan` callable to `PrepareStarterDataStep` or `prepare`. Without one, an
  existing project directory leads to a `SourceDataError`.
* It has no steps for writing `.lando.yml` or other configuration files,
  installing WordPress or a theme, importing the database, or extracting
  plugin, upload or theme archives.