"""
errors.py

Responsibility: the single error taxonomy shared by every module.

Any failure aborts the current task chain; the CLI reports the first error
and exits non-zero.
"""

from __future__ import annotations


class BuildTasksError(RuntimeError):
    pass


class ConfigError(BuildTasksError, ValueError):
    pass


class CommandError(BuildTasksError):
    def __init__(self, message: str, *, command: list[str] | None = None, returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.returncode = returncode


class TaskNotFoundError(BuildTasksError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class TaskCycleError(BuildTasksError):
    pass


class BuildInfoError(BuildTasksError):
    pass
