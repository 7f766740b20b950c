"""
buildinfo.py

Responsibility: stamp the current version-control identifier into a generated source file.

Rules:
- The identifier comes from `git rev-parse HEAD`.
- The output is rendered from a Jinja2 template and rewritten wholesale on
  every run; it is never patched in place.
- Only the timestamp differs between two runs on the same commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from jinja2 import Environment, StrictUndefined, TemplateError

from buildtasks.errors import BuildInfoError
from buildtasks.sequencer import Sequencer

log = logging.getLogger(__name__)

GIT_HEAD_COMMAND = ["git", "rev-parse", "HEAD"]

DEFAULT_TEMPLATE = """\
package {{ package }}

// THIS FILE IS AUTOMATICALLY GENERATED
// DO NOT EDIT
// CREATED: {{ timestamp }}

// SpartaGitHash is the commit hash of this Sparta library
const SpartaGitHash = "{{ sha }}"
"""


@dataclass(frozen=True)
class BuildInfo:
    sha: str
    timestamp: str
    path: Path


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def render_build_info(*, template: str, sha: str, timestamp: str, package: str) -> str:
    env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)
    try:
        return env.from_string(template).render(sha=sha, timestamp=timestamp, package=package)
    except TemplateError as e:
        raise BuildInfoError(f"Failed rendering build info template: {e}") from e


def generate_build_info(
    sequencer: Sequencer,
    *,
    output: str | Path,
    package: str,
    template: str = DEFAULT_TEMPLATE,
    clock: Callable[[], datetime] = _utc_now,
) -> BuildInfo:
    """
    Resolve HEAD, render the template and overwrite `output` (relative paths
    are resolved against the sequencer's working directory).
    """
    sha = sequencer.capture(GIT_HEAD_COMMAND)
    if not sha:
        raise BuildInfoError("`git rev-parse HEAD` returned an empty identifier")

    timestamp = str(clock())
    text = render_build_info(template=template, sha=sha, timestamp=timestamp, package=package)

    path = Path(output)
    if not path.is_absolute():
        path = sequencer.cwd / path

    if sequencer.dry_run:
        log.info("would write build info %s (%s)", path, sha)
        return BuildInfo(sha=sha, timestamp=timestamp, path=path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise BuildInfoError(f"Failed writing build info {path}: {e}") from e
    log.info("wrote build info %s (%s)", path, sha)
    return BuildInfo(sha=sha, timestamp=timestamp, path=path)
