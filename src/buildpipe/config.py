from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .paths import default_config_path, resolve
from .utils import read_json

ENV_CONFIG = "BUILDPIPE_CONFIG"
ENV_TEST_RUNNER = "BUILDPIPE_TEST_RUNNER"
ENV_DOC_DEST = "BUILDPIPE_DOC_DEST"

CARGO_RUNNER_ENV = "CARGO_TARGET_X86_64_UNKNOWN_LINUX_GNU_RUNNER"


class ConfigError(ValueError):
    """Raised when the pipeline configuration cannot be loaded or is invalid."""


class PipelineConfig(BaseModel):
    """
    Commands and paths for one project's pipeline.

    Defaults reproduce the cargo workflow: clippy, build, stale image cleanup,
    release tests (optionally under a memory checker), rustdoc, doc copy.
    An empty command list disables that step.
    """

    model_config = ConfigDict(extra="forbid")

    lint: list[str] = ["cargo", "clippy"]
    build: list[str] = ["cargo", "build"]
    test: list[str] = ["cargo", "test", "--release"]
    doc: list[str] = ["cargo", "doc"]

    clean_patterns: list[str] = ["tests/images/output/*.png"]
    clean_message: str = "no test-generated images to remove"

    # Wrapper for test binaries (e.g. "valgrind"), injected through test_runner_env.
    test_runner: Optional[str] = None
    test_runner_env: str = CARGO_RUNNER_ENV

    doc_dir: str = "target/doc"
    doc_dest: Optional[str] = None

    @field_validator("clean_patterns")
    @classmethod
    def check_relative_patterns(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            if not pattern.strip():
                raise ValueError("cleanup patterns must not be empty")
            if Path(pattern).is_absolute() or pattern.startswith(("/", "\\")):
                raise ValueError(f"cleanup pattern must be relative to the project root: {pattern!r}")
        return patterns

    def doc_source(self, root: Path) -> Path:
        return resolve(root, self.doc_dir)

    def doc_destination(self, root: Path) -> Path | None:
        if not self.doc_dest:
            return None
        return resolve(root, self.doc_dest)


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON ({e.msg} at line {e.lineno})") from e
    except OSError as e:
        raise ConfigError(f"{path}: {e.strerror or e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object at top level.")
    return data


def _env_values(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    runner = environ.get(ENV_TEST_RUNNER)
    if runner is not None:
        # An explicitly empty variable turns the wrapper off.
        values["test_runner"] = runner.strip() or None
    dest = environ.get(ENV_DOC_DEST)
    if dest:
        values["doc_dest"] = dest
    return values


def load_config(
    root: Path,
    *,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> PipelineConfig:
    """Resolve the effective configuration.

    Precedence (highest first): overrides (CLI flags), environment, config
    file, built-in defaults. An explicitly requested config file must exist;
    the default `buildpipe.json` is optional.
    """

    env = os.environ if environ is None else environ

    explicit = config_path
    if explicit is None and env.get(ENV_CONFIG):
        explicit = Path(env[ENV_CONFIG])

    data: dict[str, Any] = {}
    if explicit is not None:
        path = resolve(root, explicit)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        data.update(_read_config_file(path))
    else:
        path = default_config_path(root)
        if path.is_file():
            data.update(_read_config_file(path))

    data.update(_env_values(env))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
