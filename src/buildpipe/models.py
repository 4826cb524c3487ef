from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class StepKind(str, Enum):
    """
    Pipeline stages, in the order they run.

    - LINT / BUILD / TEST / DOC: external commands (strict)
    - CLEAN: in-process removal of stale generated artifacts (lenient)
    - PUBLISH: in-process copy of generated docs (strict)
    """
    LINT = "lint"
    BUILD = "build"
    CLEAN = "clean"
    TEST = "test"
    DOC = "doc"
    PUBLISH = "publish"


class Step(BaseModel):
    """
    One resolved pipeline step.

    argv: command line for external steps; empty for in-process steps
    env: extra environment variables applied to this step only
    params: inputs of in-process steps (cleanup patterns, doc source/destination)
    lenient: failures are reported but never abort the pipeline
    """
    name: str
    kind: StepKind
    argv: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    lenient: bool = False


class StepOutcome(BaseModel):
    name: str
    kind: StepKind
    exit_code: int = 0
    ok: bool = True
    skipped: bool = False
    message: Optional[str] = None
    duration_s: float = 0.0


class RunReport(BaseModel):
    """
    Machine-readable record of one pipeline run (written by `buildpipe run --log-json`).

    exit_code: 0 on full success, otherwise the first failing step's code
    failed_step: name of the step that aborted the run, if any
    interrupted: the run was stopped with Ctrl-C
    """
    run_id: str
    started_at: str
    finished_at: str
    exit_code: int
    failed_step: Optional[str] = None
    interrupted: bool = False
    extra_args: list[str] = Field(default_factory=list)
    steps: list[StepOutcome] = Field(default_factory=list)
