"""
designdocs/config.py -- Data-directory resolution and logging setup.

The store needs one directory holding the per-type subfolders.  It is
resolved, in order, from an explicit argument, the ``DESIGN_DOCS_PATH``
environment variable, or ``./design``.  Relative paths are anchored to the
main repository when running inside a git worktree so that every worktree
shares one set of design documents; outside git they resolve against the
current directory.

Usage::

    from designdocs.config import resolve_data_path, setup_logging

    setup_logging()
    store = DesignDocsStore(resolve_data_path())
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional

from platformdirs import user_data_dir

ENV_DATA_PATH = "DESIGN_DOCS_PATH"
ENV_GIT_CWD = "DESIGN_DOCS_GIT_CWD"
DEFAULT_DATA_PATH = "./design"

_APP_NAME = "DesignDocs"
_APP_AUTHOR = "DesignDocs"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for command-line and server entry points."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


# ---------------------------------------------------------------------------
# Git worktree detection
# ---------------------------------------------------------------------------

def _git_cwd() -> str:
    return os.environ.get(ENV_GIT_CWD) or os.getcwd()


def _git(*args: str) -> Optional[str]:
    """Run a git command, returning stripped stdout or None on any failure."""
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=_git_cwd(),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return completed.stdout.strip()


def is_in_worktree() -> bool:
    """True when the working directory is a linked git worktree."""
    git_dir = _git("rev-parse", "--git-dir")
    common_dir = _git("rev-parse", "--git-common-dir")
    if git_dir is None or common_dir is None:
        return False
    return os.path.realpath(os.path.join(_git_cwd(), git_dir)) != os.path.realpath(
        os.path.join(_git_cwd(), common_dir)
    )


def get_main_repo_path() -> Optional[str]:
    """Return the main repository root when inside a worktree, else None."""
    if not is_in_worktree():
        return None
    common_dir = _git("rev-parse", "--git-common-dir")
    if common_dir is None:
        return None
    return os.path.dirname(os.path.realpath(os.path.join(_git_cwd(), common_dir)))


# ---------------------------------------------------------------------------
# Data path resolution
# ---------------------------------------------------------------------------

def resolve_data_path(configured: Optional[str] = None) -> str:
    """Resolve the design-docs directory to an absolute path.

    Parameters
    ----------
    configured : str, optional
        Explicit path.  Falls back to ``$DESIGN_DOCS_PATH`` and then
        ``./design``.  When neither is set, the working directory is not
        inside a git repository and has no ``design/`` folder, the per-user
        data directory is used instead.

    Returns
    -------
    str
        Absolute path (not guaranteed to exist yet).
    """
    explicit = configured or os.environ.get(ENV_DATA_PATH)
    if not explicit:
        default = os.path.join(_git_cwd(), DEFAULT_DATA_PATH)
        if not os.path.isdir(default) and _git("rev-parse", "--show-toplevel") is None:
            return get_user_data_dir()
    configured = explicit or DEFAULT_DATA_PATH
    if os.path.isabs(configured):
        return configured

    main_repo = get_main_repo_path()
    if main_repo is not None:
        normalized = configured[2:] if configured.startswith("./") else configured
        resolved = os.path.join(main_repo, normalized)
        logger.debug("Worktree detected; data path resolved to %s", resolved)
        return resolved

    return os.path.abspath(os.path.join(_git_cwd(), configured))


def get_user_data_dir() -> str:
    """Per-user fallback directory for design docs outside any project."""
    path = os.path.join(user_data_dir(_APP_NAME, _APP_AUTHOR), "design")
    os.makedirs(path, exist_ok=True)
    return path
