from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from typer.core import TyperCommand

from .cleanup import remove_stale_artifacts
from .config import ConfigError, PipelineConfig, load_config
from .logging_config import setup_logging
from .models import StepKind, StepOutcome
from .paths import project_root as resolve_project_root
from .pipeline import RunContext, build_steps, run_pipeline
from .pipeline.run import EXIT_INTERRUPTED

app = typer.Typer(add_completion=False, help="Fail-fast lint/build/test/doc pipeline runner")

# Forward anything typer does not recognise (e.g. `--nocapture`, test filters) to the test step.
PASS_THROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}

EXIT_CONFIG_ERROR = 2

_VERBATIM_KEY = "buildpipe.verbatim_args"


class PassThroughCommand(TyperCommand):
    """Keeps the first `--` and everything after it away from click.

    click consumes `--` as its own end-of-options marker; the test command
    needs it (`cargo test -- --nocapture`), so the tail is stashed in
    `ctx.meta` before parsing and appended untouched by `_extra_args`.
    """

    def parse_args(self, ctx, args):
        args = list(args)
        if "--" in args:
            cut = args.index("--")
            ctx.meta[_VERBATIM_KEY] = args[cut:]
            args = args[:cut]
        return super().parse_args(ctx, args)


def _extra_args(ctx: typer.Context) -> list[str]:
    return [*ctx.args, *ctx.meta.get(_VERBATIM_KEY, [])]


def _project_root(root: Optional[Path]) -> Path:
    project_root = resolve_project_root(root)
    if not project_root.is_dir():
        typer.echo(f"ERROR: Project root is not a directory: {project_root}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    return project_root


def _load(
    root: Path,
    config: Optional[Path],
    *,
    test_runner: Optional[str] = None,
    doc_dest: Optional[Path] = None,
) -> PipelineConfig:
    try:
        return load_config(
            root,
            config_path=config,
            overrides={
                "test_runner": test_runner,
                "doc_dest": str(doc_dest) if doc_dest else None,
            },
        )
    except ConfigError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)


def _echo_outcome(outcome: StepOutcome) -> None:
    # Lenient steps report instead of failing; show what they said.
    if outcome.message and outcome.kind == StepKind.CLEAN:
        typer.echo(outcome.message)


@app.command(cls=PassThroughCommand, context_settings=PASS_THROUGH)
def run(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--pipeline-config", help="Path to a buildpipe.json config file"),
    root: Optional[Path] = typer.Option(None, "--project-root", help="Directory to run the pipeline in (default: cwd)"),
    no_clean: bool = typer.Option(False, "--no-clean", help="Skip removal of stale test-generated artifacts"),
    test_runner: Optional[str] = typer.Option(
        None, "--test-runner", help="Wrapper for test binaries, e.g. valgrind (env: BUILDPIPE_TEST_RUNNER)"
    ),
    doc_dest: Optional[Path] = typer.Option(
        None, "--doc-dest", help="Copy generated docs into this directory (env: BUILDPIPE_DOC_DEST)"
    ),
    log_json: Optional[Path] = typer.Option(None, "--log-json", help="Write a JSON run report to this path"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
):
    """
    Run lint, build, cleanup, test, doc and publish in order, stopping at the first failure.

    Options buildpipe does not own are appended to the test command. The first
    `--` and everything after it are passed on untouched:

      buildpipe run roundtrip -- --nocapture   # cargo test --release roundtrip -- --nocapture
      buildpipe run -v --features png          # cargo test --release -v --features png
    """
    setup_logging(debug)
    project_root = _project_root(root)
    cfg = _load(project_root, config, test_runner=test_runner, doc_dest=doc_dest)

    extra_args = _extra_args(ctx)
    steps = build_steps(cfg, project_root, extra_args, clean=not no_clean)
    run_ctx = RunContext.create(project_root=project_root, config=cfg, extra_args=extra_args)

    try:
        result = run_pipeline(steps, ctx=run_ctx, on_step=_echo_outcome)
    except KeyboardInterrupt:
        typer.echo("Interrupted.", err=True)
        raise typer.Exit(code=EXIT_INTERRUPTED)

    if log_json:
        result.write_report(log_json)

    if result.interrupted:
        typer.echo(f"Interrupted during '{result.failed_step}'.", err=True)
    elif result.ok:
        typer.echo(f"Pipeline complete ({len(result.outcomes)} step(s)).")
    else:
        typer.echo(f"Pipeline failed at '{result.failed_step}' (exit code {result.exit_code}).", err=True)
    raise typer.Exit(code=result.exit_code)


@app.command(cls=PassThroughCommand, context_settings=PASS_THROUGH)
def plan(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--pipeline-config", help="Path to a buildpipe.json config file"),
    root: Optional[Path] = typer.Option(None, "--project-root", help="Directory the pipeline would run in"),
    no_clean: bool = typer.Option(False, "--no-clean", help="Leave out the cleanup step"),
    test_runner: Optional[str] = typer.Option(None, "--test-runner", help="Wrapper for test binaries"),
    doc_dest: Optional[Path] = typer.Option(None, "--doc-dest", help="Doc copy destination"),
):
    """
    Print the resolved step list as JSON without running anything.

    The output is printed in stable JSON form with sorted keys.
    """
    project_root = _project_root(root)
    cfg = _load(project_root, config, test_runner=test_runner, doc_dest=doc_dest)
    steps = build_steps(cfg, project_root, _extra_args(ctx), clean=not no_clean)
    payload = [s.model_dump(mode="json") for s in steps]
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


@app.command()
def clean(
    config: Optional[Path] = typer.Option(None, "--pipeline-config", help="Path to a buildpipe.json config file"),
    root: Optional[Path] = typer.Option(None, "--project-root", help="Project directory (default: cwd)"),
):
    """
    Remove stale test-generated artifacts only. Never fails for missing files.
    """
    setup_logging()
    project_root = _project_root(root)
    cfg = _load(project_root, config)
    outcome = remove_stale_artifacts(project_root, cfg.clean_patterns, empty_message=cfg.clean_message)
    typer.echo(outcome.message)
    for err in outcome.errors:
        typer.echo(f"WARNING: {err}", err=True)
