"""Pipeline orchestration layer.

Resolves the ordered step list from configuration and runs it with
fail-fast semantics.
"""

from .context import RunContext
from .run import RunResult, run_pipeline
from .steps import build_steps

__all__ = ["RunContext", "RunResult", "build_steps", "run_pipeline"]
