"""
cli.py

Responsibility: CLI entrypoint for buildtasks.

High-level flow:
1) Resolve and load the task table -> `RunnerConfig`
2) Build a `Runner` (sequencer + collector + task graph)
3) `list` the tasks, or `run` the named tasks in order, stopping at the first failure

This module should orchestrate behavior but keep concerns isolated:
- Config parsing: `config.py`
- Subprocess execution: `sequencer.py`
- Source traversal: `collector.py`
- Prerequisite ordering: `graph.py`
"""

from __future__ import annotations

import argparse
import logging
import sys

from buildtasks import __version__
from buildtasks.config import load_config, resolve_config_path
from buildtasks.errors import BuildTasksError
from buildtasks.runner import Runner

log = logging.getLogger("buildtasks")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
    )


def _load_runner(args: argparse.Namespace) -> Runner:
    path = resolve_config_path(args.config)
    log.debug("using config %s", path)
    return Runner(load_config(path), dry_run=bool(args.dry_run), dedupe=bool(args.dedupe))


def list_cmd(args: argparse.Namespace) -> int:
    runner = _load_runner(args)
    width = max((len(name) for name in runner.graph.names()), default=0)
    for name in runner.graph.names():
        task = runner.graph.get(name)
        line = f"{name.ljust(width)}  {task.help}".rstrip()
        if task.deps:
            line += f" (deps: {', '.join(task.deps)})"
        print(line)
    return 0


def run_cmd(args: argparse.Namespace) -> int:
    runner = _load_runner(args)
    runner.run(*args.tasks)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="buildtasks", description="buildtasks - fail-fast task runner over external build tools")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", default=None, help="Task table YAML (default: $BUILDTASKS_CONFIG, ./buildtasks.yaml, packaged defaults)")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--dry-run", action="store_true", help="Log commands without launching them")
    p.add_argument("--dedupe", action="store_true", help="Run a shared prerequisite at most once per invocation")
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List the available tasks")
    ls.set_defaults(func=list_cmd)

    r = sub.add_parser("run", help="Run one or more tasks (and their prerequisites)")
    r.add_argument("tasks", nargs="+", help="Task names, run in the order given")
    r.set_defaults(func=run_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))
    try:
        return int(args.func(args))
    except BuildTasksError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
