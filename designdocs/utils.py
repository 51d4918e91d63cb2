"""
Shared utility functions for the design-docs engine.

Holds the document codec: one YAML file per entity, named after its id.

All YAML writes use atomic temp-file-then-os.replace() so that a crash
mid-write never leaves a truncated entity file behind.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class _Loader(yaml.SafeLoader):
    """SafeLoader that keeps dates and timestamps as plain strings.

    Hand-written files often carry unquoted ``date: 2025-01-15`` values;
    the entity models expect strings there.
    """


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


# ---------------------------------------------------------------------------
# Filename convention
# ---------------------------------------------------------------------------

def entity_filename(entity_id: str) -> str:
    """Return the on-disk filename for *entity_id* (``"W01" -> "W01.yaml"``)."""
    return f"{entity_id}.yaml"


def entity_path(directory, entity_id: str) -> Path:
    """Return the full path of the file backing *entity_id* in *directory*.

    An existing ``.yml`` file wins over the default ``.yaml`` name so that
    hand-authored files are rewritten in place rather than duplicated.
    """
    directory = Path(directory)
    legacy = directory / f"{entity_id}.yml"
    if legacy.exists():
        return legacy
    return directory / entity_filename(entity_id)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# YAML I/O (atomic writes)
# ---------------------------------------------------------------------------

def dump_yaml(data) -> str:
    """Serialise *data* to canonical block-style YAML, keeping key order."""
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=100,
    )


def read_yaml(path):
    """Parse a single YAML file.

    Errors are not swallowed: the caller decides how a malformed file is reported.

    Raises
    ------
    OSError
        If the file cannot be read.
    yaml.YAMLError
        If the content is not valid YAML.
    ValueError
        If the document is not a mapping.
    """
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.load(fh, Loader=_Loader)
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at the top level, got {type(data).__name__}"
        )
    return data


def safe_write_yaml(path, data) -> None:
    """Atomically write *data* as YAML to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the target YAML file.
    data : dict
        YAML-serialisable mapping to write.
    """
    path = str(path)
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(dump_yaml(data))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_entity(directory, entity_id: str, data: dict) -> Path:
    """Write one entity to ``<directory>/<entity_id>.yaml`` and return the path."""
    path = entity_path(directory, entity_id)
    safe_write_yaml(path, data)
    return path


def remove_entity_file(directory, entity_id: str) -> bool:
    """Delete the file backing *entity_id*.  Returns False if it was absent."""
    path = entity_path(directory, entity_id)
    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    return True


def read_all(directory) -> tuple[list[tuple[Path, dict]], list[tuple[Path, str]]]:
    """Parse every YAML file in *directory* independently.

    Parameters
    ----------
    directory : str or pathlib.Path
        Directory to scan (non-recursive).  A missing directory yields two
        empty lists.

    Returns
    -------
    tuple
        ``(documents, failures)`` where *documents* is a list of
        ``(path, data)`` pairs and *failures* a list of ``(path, message)``
        pairs for files that could not be parsed.
    """
    directory = Path(directory)
    documents: list[tuple[Path, dict]] = []
    failures: list[tuple[Path, str]] = []
    if not directory.is_dir():
        return documents, failures

    for path in sorted(directory.iterdir()):
        if path.suffix not in YAML_SUFFIXES or not path.is_file():
            continue
        try:
            documents.append((path, read_yaml(path)))
        except (yaml.YAMLError, ValueError, OSError) as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            failures.append((path, str(exc)))
    return documents, failures

