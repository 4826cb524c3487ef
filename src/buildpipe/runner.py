"""
Wrapper for running external command-line processes.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from .logging_config import get_logger

log = get_logger(__name__)

# Shell conventions for commands that never started.
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


class Runner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> int: ...


def format_command(argv: Sequence[str], env: Mapping[str, str] | None = None) -> str:
    """Render a command the way it would be typed in a shell, env prefix included."""
    parts = [f"{k}={shlex.quote(v)}" for k, v in (env or {}).items()]
    parts.extend(shlex.quote(str(a)) for a in argv)
    return " ".join(parts)


class CommandRunner:
    """Executes external commands with inherited stdout/stderr and blocks until exit."""

    def __init__(self, base_env: Mapping[str, str] | None = None):
        self.base_env = dict(os.environ if base_env is None else base_env)

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> int:
        """
        Run `argv` with the base environment overlaid by `env`.
        Returns the exit status; spawn failures map to 127 / 126.
        """
        if not argv:
            raise ValueError("Empty command.")

        full_env = {**self.base_env, **(env or {})}
        log.info("command", cmd=format_command(argv, env), cwd=str(cwd) if cwd else None)

        try:
            proc = subprocess.run([str(a) for a in argv], env=full_env, cwd=cwd, check=False)
        except FileNotFoundError:
            log.error("command_not_found", program=argv[0])
            return EXIT_NOT_FOUND
        except PermissionError:
            log.error("command_not_executable", program=argv[0])
            return EXIT_NOT_EXECUTABLE

        rc = proc.returncode
        # A child killed by a signal reports a negative status.
        if rc < 0:
            rc = 128 - rc
        log.debug("command_exited", program=argv[0], exit_code=rc)
        return rc
