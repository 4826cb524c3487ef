from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path

from ..config import PipelineConfig


@dataclass(frozen=True)
class RunContext:
    """Everything a pipeline run shares: the working directory, resolved
    configuration, the caller's pass-through arguments and a run id."""

    project_root: Path
    config: PipelineConfig
    run_id: str
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        *,
        project_root: Path,
        config: PipelineConfig | None = None,
        extra_args: list[str] | tuple[str, ...] = (),
        run_id: str | None = None,
    ) -> "RunContext":
        return cls(
            project_root=project_root,
            config=config or PipelineConfig(),
            run_id=run_id or str(uuid.uuid4()),
            extra_args=tuple(extra_args),
        )
