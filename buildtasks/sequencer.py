"""
sequencer.py

Responsibility: launch external commands one at a time, fail fast.

Rules:
- Commands run in order; each is awaited before the next is considered.
- The first non-zero exit (or launch failure) raises `CommandError`; later
  commands never run and earlier side effects are left in place.
- An empty sequence is a success.
- `$VAR` / `${VAR}` references are expanded from the sequencer environment
  (unset -> empty string) and tokens that expand to nothing are dropped.
- Tokens with Jinja2 markers are rendered against the config variables.

This module intentionally does NOT know about tasks or source trees.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import time
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from jinja2 import Environment, StrictUndefined, TemplateError

from buildtasks.errors import CommandError, ConfigError

Command = Sequence[str]

log = logging.getLogger(__name__)

_ENV_REF = re.compile(r"\$\{(\w+)\}|\$(\w+)")

DRY_RUN_OUTPUT = "<dry-run>"


def _has_template_markers(token: str) -> bool:
    return ("{{" in token) or ("{%" in token)


class Sequencer:
    def __init__(
        self,
        *,
        cwd: str | Path = ".",
        env: Mapping[str, str] | None = None,
        variables: Mapping[str, Any] | None = None,
        dry_run: bool = False,
    ) -> None:
        self.cwd = Path(cwd)
        self.env = dict(os.environ if env is None else env)
        self.variables = dict(variables or {})
        self.dry_run = dry_run
        self._jinja = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)

    def _expand_env(self, token: str) -> str:
        return _ENV_REF.sub(lambda m: self.env.get(m.group(1) or m.group(2), ""), token)

    def _render(self, token: str) -> str:
        if not _has_template_markers(token):
            return token
        try:
            return self._jinja.from_string(token).render(**self.variables)
        except TemplateError as e:
            raise ConfigError(f"Failed rendering command token {token!r}: {e}") from e

    def expand(self, command: Command) -> list[str]:
        """
        Resolve one command into the argv actually launched.
        """
        argv: list[str] = []
        for raw in command:
            token = self._expand_env(self._render(str(raw)))
            if token:
                argv.append(token)
        return argv

    def run(self, command: Command, *, literal_tail: Sequence[str] = ()) -> None:
        """
        Run one command. `literal_tail` tokens (e.g. collected file paths) are
        appended after expansion, exactly as given.
        """
        argv = self.expand(command) + [str(token) for token in literal_tail]
        if not argv:
            raise CommandError(f"Empty command: {list(command)!r}", command=list(command))

        log.info("running: %s", shlex.join(argv))
        if self.dry_run:
            return

        log.debug("cwd=%s argv=%r", self.cwd, argv)
        started = time.monotonic()
        try:
            proc = subprocess.run(argv, cwd=str(self.cwd), env=self.env, check=False)
        except OSError as e:
            raise CommandError(f"Failed to launch: {shlex.join(argv)}: {e}", command=argv) from e
        log.debug("finished in %d ms (exit %d)", int((time.monotonic() - started) * 1000), proc.returncode)

        if proc.returncode != 0:
            raise CommandError(
                f"Command failed (exit {proc.returncode}): {shlex.join(argv)}",
                command=argv,
                returncode=proc.returncode,
            )

    def run_commands(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.run(command)

    def capture(self, command: Command) -> str:
        """
        Run a command and return its stripped stdout. In dry-run mode nothing is
        launched and DRY_RUN_OUTPUT is returned instead.
        """
        argv = self.expand(command)
        if not argv:
            raise CommandError(f"Empty command: {list(command)!r}", command=list(command))
        if self.dry_run:
            log.info("would capture: %s", shlex.join(argv))
            return DRY_RUN_OUTPUT
        log.debug("capturing: %s", shlex.join(argv))
        try:
            proc = subprocess.run(argv, cwd=str(self.cwd), env=self.env, check=False, capture_output=True, text=True)
        except OSError as e:
            raise CommandError(f"Failed to launch: {shlex.join(argv)}: {e}", command=argv) from e
        if proc.returncode != 0:
            raise CommandError(
                f"Command failed (exit {proc.returncode}): {shlex.join(argv)}\n\n{proc.stderr}",
                command=argv,
                returncode=proc.returncode,
            )
        return proc.stdout.strip()
