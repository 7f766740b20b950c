"""
config.py

Responsibility: load the YAML task table into a deterministic, typed model.

Lookup order for the config file:
1) explicit path (CLI `--config`)
2) env `BUILDTASKS_CONFIG`
3) `buildtasks.yaml` in the current directory
4) the packaged `defaults.yaml`

The CLI and task graph treat the parsed result as the single source of truth;
nothing here is mutated after loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from buildtasks.errors import ConfigError

DEFAULTS_PATH = Path(__file__).resolve().parent / "defaults.yaml"
LOCAL_CONFIG_NAME = "buildtasks.yaml"
CONFIG_ENV_VAR = "BUILDTASKS_CONFIG"

STEP_KINDS = ("run", "each_source", "build_info")


@dataclass(frozen=True)
class Step:
    """One unit of a task body."""

    kind: str
    commands: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class TaskSpec:
    name: str
    help: str = ""
    deps: tuple[str, ...] = ()
    steps: tuple[Step, ...] = ()


@dataclass(frozen=True)
class BuildInfoSpec:
    output: str = "buildinfo.go"
    package: str = "main"
    template: str | None = None


@dataclass(frozen=True)
class RunnerConfig:
    """Everything the collector, sequencer and task graph are constructed from."""

    root: str = "."
    work_dir: str = "."
    source_root: str = "."
    source_extension: str = ".go"
    ignore: tuple[str, ...] = ()
    variables: dict[str, Any] = field(default_factory=dict)
    build_info: BuildInfoSpec = field(default_factory=BuildInfoSpec)
    tasks: dict[str, TaskSpec] = field(default_factory=dict)

    def template_variables(self) -> dict[str, Any]:
        return {"work_dir": self.work_dir, "root": self.root, **self.variables}


def resolve_config_path(explicit: str | Path | None = None, *, env: Mapping[str, str] | None = None, cwd: Path | None = None) -> Path:
    env = os.environ if env is None else env
    if explicit:
        return Path(explicit)
    if env.get(CONFIG_ENV_VAR):
        return Path(env[CONFIG_ENV_VAR])
    local = (cwd or Path.cwd()) / LOCAL_CONFIG_NAME
    if local.exists():
        return local
    return DEFAULTS_PATH


def _command(raw: Any, where: str) -> tuple[str, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"{where}: a command must be a non-empty list of strings")
    for token in raw:
        if not isinstance(token, str):
            raise ConfigError(f"{where}: token {token!r} is not a string; quote it in the YAML (e.g. \"0755\")")
    return tuple(raw)


def _parse_step(raw: Any, where: str) -> Step:
    if raw == "build_info":
        return Step(kind="build_info")
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ConfigError(f"{where}: a step must be `build_info` or a single-key mapping of {STEP_KINDS}")

    kind, body = next(iter(raw.items()))
    if kind == "run":
        if not isinstance(body, list):
            raise ConfigError(f"{where}.run: expected a list of commands")
        return Step(kind="run", commands=tuple(_command(c, f"{where}.run[{i}]") for i, c in enumerate(body)))
    if kind == "each_source":
        return Step(kind="each_source", commands=(_command(body, f"{where}.each_source"),))
    if kind == "build_info":
        return Step(kind="build_info")
    raise ConfigError(f"{where}: unknown step kind `{kind}` (expected one of {STEP_KINDS})")


def _parse_task(name: str, raw: Any) -> TaskSpec:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"tasks.{name}: must be a mapping")

    deps_raw = raw.get("deps") or []
    if not isinstance(deps_raw, list):
        raise ConfigError(f"tasks.{name}.deps: must be a list of task names")

    steps_raw = raw.get("steps") or []
    if not isinstance(steps_raw, list):
        raise ConfigError(f"tasks.{name}.steps: must be a list")

    return TaskSpec(
        name=name,
        help=str(raw.get("help") or "").strip(),
        deps=tuple(str(d) for d in deps_raw),
        steps=tuple(_parse_step(s, f"tasks.{name}.steps[{i}]") for i, s in enumerate(steps_raw)),
    )


def parse_config(data: Mapping[str, Any]) -> RunnerConfig:
    if not isinstance(data, Mapping):
        raise ConfigError("Config must be a mapping/object at the top level.")

    ignore_raw = data.get("ignore") or []
    if not isinstance(ignore_raw, list):
        raise ConfigError("`ignore` must be a list of substrings when provided.")

    vars_raw = data.get("variables") or {}
    if not isinstance(vars_raw, dict):
        raise ConfigError("`variables` must be an object/mapping when provided.")

    bi_raw = data.get("build_info") or {}
    if not isinstance(bi_raw, dict):
        raise ConfigError("`build_info` must be an object/mapping when provided.")
    build_info = BuildInfoSpec(
        output=str(bi_raw.get("output") or BuildInfoSpec.output),
        package=str(bi_raw.get("package") or BuildInfoSpec.package),
        template=bi_raw.get("template"),
    )

    tasks_raw = data.get("tasks") or {}
    if not isinstance(tasks_raw, dict):
        raise ConfigError("`tasks` must be an object/mapping of task name -> task.")
    tasks = {str(name): _parse_task(str(name), raw) for name, raw in tasks_raw.items()}

    for task in tasks.values():
        for dep in task.deps:
            if dep not in tasks:
                raise ConfigError(f"tasks.{task.name}.deps: unknown task `{dep}`")

    extension = str(data.get("source_extension") or ".go")
    if not extension.startswith("."):
        extension = "." + extension

    return RunnerConfig(
        root=str(data.get("root") or "."),
        work_dir=str(data.get("work_dir") or "."),
        source_root=str(data.get("source_root") or "."),
        source_extension=extension,
        ignore=tuple(str(s) for s in ignore_raw),
        variables=dict(sorted(vars_raw.items(), key=lambda kv: str(kv[0]))),
        build_info=build_info,
        tasks=tasks,
    )


def load_config(path: str | Path) -> RunnerConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return parse_config(data)
