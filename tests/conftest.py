from __future__ import annotations

import sys
from pathlib import Path

import pytest


def append_cmd(log_path: Path, word: str, *, exit_code: int = 0) -> list[str]:
    """A command that appends `word` to log_path, then exits with exit_code."""
    code = (
        "import sys\n"
        f"open({str(log_path)!r}, 'a').write({word!r} + '\\n')\n"
        f"sys.exit({exit_code})\n"
    )
    return [sys.executable, "-c", code]


def read_log(log_path: Path) -> list[str]:
    if not log_path.exists():
        return []
    return log_path.read_text(encoding="utf-8").split()


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "calls.log"
