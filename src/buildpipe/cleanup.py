from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .logging_config import get_logger

log = get_logger(__name__)


@dataclass
class CleanupOutcome:
    removed: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    message: str = ""


def _matches(root: Path, patterns: Iterable[str], errors: list[str]) -> list[Path]:
    seen: set[Path] = set()
    out: list[Path] = []
    for pattern in patterns:
        try:
            found = sorted(root.glob(pattern))
        except (NotImplementedError, ValueError, OSError) as e:
            # Absolute or empty patterns are rejected by pathlib.
            errors.append(f"{pattern!r}: {e}")
            log.warning("cleanup_bad_pattern", pattern=pattern, error=str(e))
            continue
        for p in found:
            if p.is_file() and p not in seen:
                seen.add(p)
                out.append(p)
    return out


def remove_stale_artifacts(
    root: Path,
    patterns: Iterable[str],
    *,
    empty_message: str = "no test-generated images to remove",
) -> CleanupOutcome:
    """
    Deletes files left over from a previous test run (glob patterns relative to root).

    Best-effort: nothing to delete is a normal outcome. A pattern that cannot
    be globbed or a file that cannot be removed is recorded in `errors`
    rather than raised.
    """
    outcome = CleanupOutcome()
    for path in _matches(root, patterns, outcome.errors):
        try:
            path.unlink()
            outcome.removed.append(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            outcome.errors.append(f"{path}: {e.strerror or e}")
            log.warning("cleanup_failed", path=str(path), error=str(e))

    if outcome.removed:
        outcome.message = f"removed {len(outcome.removed)} stale file(s)"
    elif not outcome.errors:
        outcome.message = empty_message
    else:
        outcome.message = f"cleanup incomplete: {len(outcome.errors)} problem(s)"

    log.info("cleanup_done", removed=len(outcome.removed), errors=len(outcome.errors))
    return outcome
