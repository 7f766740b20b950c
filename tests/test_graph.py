from __future__ import annotations

import pytest

from buildtasks.errors import CommandError, TaskCycleError, TaskNotFoundError
from buildtasks.graph import Task, TaskGraph, TaskStatus


def _graph(calls: list[str], *, dedupe: bool = False, fail: str | None = None) -> TaskGraph:
    graph = TaskGraph(dedupe=dedupe)

    def body(name: str):
        def run() -> None:
            calls.append(name)
            if name == fail:
                raise CommandError(f"{name} failed")

        return run

    graph.add(Task("install", body("install")))
    graph.add(Task("p1", body("p1")))
    graph.add(Task("p2", body("p2")))
    graph.add(Task("target", body("target"), deps=("p1", "p2")))
    graph.add(Task("build", body("build"), deps=("install",)))
    graph.add(Task("test", body("test"), deps=("install",)))
    graph.add(Task("ci", body("ci"), deps=("build", "test")))
    return graph


def test_prerequisites_run_in_declared_order() -> None:
    calls: list[str] = []
    assert _graph(calls).run("target") == ["p1", "p2", "target"]
    assert calls == ["p1", "p2", "target"]


def test_failed_prerequisite_skips_body() -> None:
    calls: list[str] = []
    graph = _graph(calls, fail="p2")
    with pytest.raises(CommandError, match="p2 failed"):
        graph.run("target")
    assert calls == ["p1", "p2"]
    assert graph.status["p2"] is TaskStatus.FAILED
    assert graph.status["target"] is TaskStatus.NOT_STARTED


def test_shared_prerequisite_runs_per_branch_by_default() -> None:
    calls: list[str] = []
    _graph(calls).run("ci")
    assert calls == ["install", "build", "install", "test", "ci"]


def test_dedupe_runs_shared_prerequisite_once() -> None:
    calls: list[str] = []
    graph = _graph(calls, dedupe=True)
    graph.run("ci")
    assert calls == ["install", "build", "test", "ci"]
    assert graph.status["ci"] is TaskStatus.SUCCEEDED


def test_unknown_task() -> None:
    with pytest.raises(TaskNotFoundError):
        TaskGraph().run("missing")


def test_cycle_is_reported_before_any_body_runs() -> None:
    calls: list[str] = []
    graph = TaskGraph()
    graph.add(Task("a", lambda: calls.append("a"), deps=("b",)))
    graph.add(Task("b", lambda: calls.append("b"), deps=("a",)))
    with pytest.raises(TaskCycleError, match="a -> b -> a"):
        graph.run("a")
    assert calls == []


def test_task_decorator_registers_callable() -> None:
    graph = TaskGraph()
    calls: list[str] = []

    @graph.task(deps=())
    def generate_build_info() -> None:
        """Stamp the SHA."""
        calls.append("gen")

    @graph.task("publish", deps=("generate-build-info",))
    def _publish() -> None:
        calls.append("publish")

    assert graph.names() == ["generate-build-info", "publish"]
    assert graph.get("generate-build-info").help == "Stamp the SHA."
    graph.run("publish")
    assert calls == ["gen", "publish"]
