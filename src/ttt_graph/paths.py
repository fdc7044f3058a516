"""Path helpers for export locations.

Environment-first, falling back to the nearest git checkout and finally
the current working directory.
"""

from __future__ import annotations

import os
from pathlib import Path


def _find_git_root(start: Path) -> Path | None:
    for cur in [start, *start.parents][:6]:
        if (cur / ".git").exists():
            return cur
    return None


def repo_root() -> Path:
    """Order: env var TTT_GRAPH_ROOT -> nearest parent containing .git -> CWD."""
    env = os.getenv("TTT_GRAPH_ROOT")
    if env:
        return Path(env)
    git_root = _find_git_root(Path(__file__).resolve())
    return git_root if git_root is not None else Path.cwd()


def data_out() -> Path:
    p = os.getenv("TTT_GRAPH_OUT")
    return Path(p) if p else repo_root() / "data_graph"
