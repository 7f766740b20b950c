"""
buildtasks package

A fail-fast task runner that orchestrates external build tools.

Key responsibilities are split across modules:
- `sequencer.py`: run an ordered list of commands, stopping at the first failure
- `collector.py`: find source files and apply one command to each of them
- `graph.py`: run named tasks after their prerequisites
- `buildinfo.py`: stamp the git SHA into a generated source file
- `config.py`: load the YAML task table
- `runner.py`: wire a loaded config into a runnable task graph
- `cli.py`: CLI entrypoint (`list`, `run`)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
