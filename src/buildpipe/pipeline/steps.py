from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..config import PipelineConfig
from ..models import Step, StepKind


def build_steps(
    config: PipelineConfig,
    root: Path,
    extra_args: Sequence[str] = (),
    *,
    clean: bool = True,
) -> list[Step]:
    """Resolve the ordered step list for one run.

    lint, build, clean, test, doc, publish. Commands configured as empty lists
    are left out, as are cleanup when `clean` is False or no patterns are set,
    and publish when there is no destination. Extra arguments are appended
    verbatim to the test command.
    """

    steps: list[Step] = []

    if config.lint:
        steps.append(Step(name="lint", kind=StepKind.LINT, argv=list(config.lint)))
    if config.build:
        steps.append(Step(name="build", kind=StepKind.BUILD, argv=list(config.build)))

    if clean and config.clean_patterns:
        steps.append(
            Step(
                name="clean",
                kind=StepKind.CLEAN,
                lenient=True,
                params={"patterns": list(config.clean_patterns), "message": config.clean_message},
            )
        )

    if config.test:
        env: dict[str, str] = {}
        if config.test_runner:
            env[config.test_runner_env] = config.test_runner
        steps.append(
            Step(name="test", kind=StepKind.TEST, argv=[*config.test, *extra_args], env=env)
        )

    if config.doc:
        steps.append(Step(name="doc", kind=StepKind.DOC, argv=list(config.doc)))

    dest = config.doc_destination(root)
    if dest is not None:
        steps.append(
            Step(
                name="publish",
                kind=StepKind.PUBLISH,
                params={"source": str(config.doc_source(root)), "dest": str(dest)},
            )
        )

    return steps
