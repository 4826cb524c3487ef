from __future__ import annotations

from pathlib import Path

CONFIG_FILENAME = "buildpipe.json"


def project_root(root: Path | None = None) -> Path:
    """
    Directory the pipeline runs in. All relative paths resolve against it.
    Defaults to the current working directory, like the shell script did.
    """
    return (root or Path.cwd()).resolve()


def default_config_path(root: Path) -> Path:
    return root / CONFIG_FILENAME


def resolve(root: Path, path: str | Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else root / p
