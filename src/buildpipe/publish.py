from __future__ import annotations

import shutil
from pathlib import Path

from .logging_config import get_logger

log = get_logger(__name__)


class PublishError(RuntimeError):
    """Raised when generated documentation cannot be copied to its destination."""


def publish_docs(source: Path, dest_root: Path) -> Path:
    """
    Copy the generated documentation tree into `dest_root`.

    Mirrors `cp -r <source> <dest_root>/`: the tree lands at
    `dest_root / source.name`, merging into whatever is already there.
    """
    if not source.is_dir():
        raise PublishError(f"Documentation directory not found: {source}")

    target = dest_root / source.name
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, target, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        raise PublishError(f"Failed to copy {source} to {target}: {e}") from e

    log.info("docs_published", source=str(source), target=str(target))
    return target
