from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..cleanup import remove_stale_artifacts
from ..logging_config import get_logger
from ..models import RunReport, Step, StepKind, StepOutcome
from ..publish import PublishError, publish_docs
from ..runner import CommandRunner, Runner
from ..utils import now_iso, write_json
from .context import RunContext

log = get_logger(__name__)

# Exit status for an in-process step that failed (matches `cp` on error).
EXIT_STEP_ERROR = 1
# Operator pressed Ctrl-C (128 + SIGINT).
EXIT_INTERRUPTED = 130


@dataclass
class RunResult:
    """Ordered outcomes (steps after a failure are marked skipped) and the overall exit code."""

    run_id: str
    started_at: str
    finished_at: str = ""
    extra_args: list[str] = field(default_factory=list)
    outcomes: list[StepOutcome] = field(default_factory=list)
    exit_code: int = 0
    failed_step: Optional[str] = None
    interrupted: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_report(self) -> RunReport:
        return RunReport(
            run_id=self.run_id,
            started_at=self.started_at,
            finished_at=self.finished_at,
            exit_code=self.exit_code,
            failed_step=self.failed_step,
            interrupted=self.interrupted,
            extra_args=list(self.extra_args),
            steps=list(self.outcomes),
        )

    def write_report(self, path: Path) -> None:
        write_json(path, self.to_report().model_dump(mode="json"))


def _run_clean(step: Step, ctx: RunContext) -> tuple[int, str]:
    patterns = step.params.get("patterns", [])
    message = step.params.get("message") or ctx.config.clean_message
    outcome = remove_stale_artifacts(ctx.project_root, patterns, empty_message=message)
    return 0, outcome.message


def _run_publish(step: Step) -> tuple[int, str]:
    target = publish_docs(Path(step.params["source"]), Path(step.params["dest"]))
    return 0, f"copied to {target}"


def _execute(step: Step, ctx: RunContext, runner: Runner) -> tuple[int, Optional[str]]:
    if step.kind == StepKind.CLEAN:
        return _run_clean(step, ctx)
    if step.kind == StepKind.PUBLISH:
        return _run_publish(step)
    return runner.run(step.argv, env=step.env, cwd=ctx.project_root), None


def run_pipeline(
    steps: Sequence[Step],
    *,
    ctx: RunContext,
    runner: Runner | None = None,
    on_step: Callable[[StepOutcome], None] | None = None,
) -> RunResult:
    """Run steps in order, stopping at the first failure.

    Strict steps abort the run on a non-zero status; the run's exit code is
    that status. Lenient steps (cleanup) always count as success, their
    errors surface only as a message. Steps after a failure never run.
    Ctrl-C during a step ends the run the same way, with exit code 130 and
    `interrupted` set, so the outcomes so far can still be reported.
    """

    runner = runner or CommandRunner()
    result = RunResult(run_id=ctx.run_id, started_at=now_iso(), extra_args=list(ctx.extra_args))

    for index, step in enumerate(steps):
        log.info("step_started", step=step.name)
        t0 = time.monotonic()
        message: Optional[str] = None
        try:
            rc, message = _execute(step, ctx, runner)
        except KeyboardInterrupt:
            rc, message = EXIT_INTERRUPTED, "interrupted"
            result.interrupted = True
        except PublishError as e:
            rc, message = EXIT_STEP_ERROR, str(e)
        except Exception as e:
            if not step.lenient:
                raise
            rc, message = EXIT_STEP_ERROR, f"{type(e).__name__}: {e}"
        duration = round(time.monotonic() - t0, 3)

        if step.lenient and rc != 0 and not result.interrupted:
            log.warning("step_tolerated", step=step.name, exit_code=rc, message=message)
            rc = 0

        outcome = StepOutcome(
            name=step.name,
            kind=step.kind,
            exit_code=rc,
            ok=rc == 0,
            message=message,
            duration_s=duration,
        )
        result.outcomes.append(outcome)
        if on_step is not None:
            on_step(outcome)

        if rc != 0:
            log.error("step_failed", step=step.name, exit_code=rc, message=message)
            result.exit_code = rc
            result.failed_step = step.name
            result.outcomes.extend(
                StepOutcome(name=s.name, kind=s.kind, ok=False, skipped=True) for s in steps[index + 1 :]
            )
            break
        log.info("step_finished", step=step.name, duration_s=duration)

    result.finished_at = now_iso()
    log.info("pipeline_finished", exit_code=result.exit_code, failed_step=result.failed_step)
    return result
