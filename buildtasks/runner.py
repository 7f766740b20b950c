"""
runner.py

Responsibility: turn a `RunnerConfig` into a runnable `TaskGraph`.

Each configured task becomes a graph node whose body executes its steps in
order through one shared `Sequencer` and `SourceFileCollector`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping

from buildtasks.buildinfo import DEFAULT_TEMPLATE, generate_build_info
from buildtasks.collector import SourceFileCollector
from buildtasks.config import RunnerConfig, Step, TaskSpec
from buildtasks.errors import ConfigError
from buildtasks.graph import Task, TaskGraph
from buildtasks.sequencer import Sequencer


class Runner:
    def __init__(
        self,
        config: RunnerConfig,
        *,
        env: Mapping[str, str] | None = None,
        dry_run: bool = False,
        dedupe: bool = False,
    ) -> None:
        self.config = config
        root = Path(config.root)
        self.sequencer = Sequencer(
            cwd=root,
            env=os.environ if env is None else env,
            variables=config.template_variables(),
            dry_run=dry_run,
        )
        self.collector = SourceFileCollector(root / config.source_root, config.ignore)
        self.graph = TaskGraph(dedupe=dedupe)
        for entry in config.tasks.values():
            self.graph.add(Task(name=entry.name, body=self._body(entry), deps=entry.deps, help=entry.help))

    def _body(self, entry: TaskSpec) -> Callable[[], None]:
        def body() -> None:
            for step in entry.steps:
                self._run_step(step)

        return body

    def _run_step(self, step: Step) -> None:
        if step.kind == "run":
            self.sequencer.run_commands(step.commands)
        elif step.kind == "each_source":
            self.collector.apply(self.sequencer, step.commands[0], self.config.source_extension)
        elif step.kind == "build_info":
            bi = self.config.build_info
            generate_build_info(
                self.sequencer,
                output=bi.output,
                package=bi.package,
                template=bi.template or DEFAULT_TEMPLATE,
            )
        else:
            raise ConfigError(f"Unknown step kind: {step.kind}")

    def run(self, *names: str) -> list[str]:
        return self.graph.run(*names)
