from __future__ import annotations

import json
from pathlib import Path

import pytest

from buildpipe.config import CARGO_RUNNER_ENV, ConfigError, PipelineConfig, load_config


def _write(path: Path, obj) -> Path:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


def test_defaults_match_cargo_workflow(tmp_path: Path) -> None:
    cfg = load_config(tmp_path, environ={})

    assert cfg.lint == ["cargo", "clippy"]
    assert cfg.build == ["cargo", "build"]
    assert cfg.test == ["cargo", "test", "--release"]
    assert cfg.doc == ["cargo", "doc"]
    assert cfg.clean_patterns == ["tests/images/output/*.png"]
    assert cfg.test_runner is None
    assert cfg.test_runner_env == CARGO_RUNNER_ENV
    assert cfg.doc_dest is None
    assert cfg.doc_destination(tmp_path) is None


def test_project_file_is_picked_up(tmp_path: Path) -> None:
    _write(tmp_path / "buildpipe.json", {"lint": ["ruff", "check", "."], "doc_dest": "out"})

    cfg = load_config(tmp_path, environ={})

    assert cfg.lint == ["ruff", "check", "."]
    assert cfg.build == ["cargo", "build"]
    assert cfg.doc_destination(tmp_path) == tmp_path / "out"


def test_precedence_flag_over_env_over_file(tmp_path: Path) -> None:
    _write(tmp_path / "buildpipe.json", {"test_runner": "file-runner", "doc_dest": "/from/file"})
    env = {"BUILDPIPE_TEST_RUNNER": "valgrind", "BUILDPIPE_DOC_DEST": "/from/env"}

    cfg = load_config(tmp_path, environ=env)
    assert cfg.test_runner == "valgrind"
    assert cfg.doc_dest == "/from/env"

    cfg = load_config(tmp_path, environ=env, overrides={"test_runner": "memcheck", "doc_dest": None})
    assert cfg.test_runner == "memcheck"
    assert cfg.doc_dest == "/from/env"


def test_empty_env_runner_disables_wrapper(tmp_path: Path) -> None:
    _write(tmp_path / "buildpipe.json", {"test_runner": "valgrind"})

    cfg = load_config(tmp_path, environ={"BUILDPIPE_TEST_RUNNER": ""})

    assert cfg.test_runner is None


def test_config_path_from_env(tmp_path: Path) -> None:
    other = _write(tmp_path / "ci.json", {"build": ["make"]})

    cfg = load_config(tmp_path, environ={"BUILDPIPE_CONFIG": str(other)})

    assert cfg.build == ["make"]


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path, config_path=Path("nope.json"), environ={})
    assert "not found" in str(ei.value)


def test_invalid_json_is_an_error(tmp_path: Path) -> None:
    (tmp_path / "buildpipe.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path, environ={})
    assert "invalid JSON" in str(ei.value)


def test_unknown_and_mistyped_keys_are_rejected(tmp_path: Path) -> None:
    _write(tmp_path / "buildpipe.json", {"lnt": ["x"]})
    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path, environ={})
    assert "lnt" in str(ei.value)

    _write(tmp_path / "buildpipe.json", {"build": "cargo build"})
    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_top_level_must_be_object(tmp_path: Path) -> None:
    _write(tmp_path / "buildpipe.json", ["cargo", "build"])

    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_config_error_is_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


def test_absolute_doc_paths_are_kept(tmp_path: Path) -> None:
    cfg = PipelineConfig(doc_dir=str(tmp_path / "docs"), doc_dest="/mnt/c/Users/me/Documents")

    assert cfg.doc_source(Path("/elsewhere")) == tmp_path / "docs"
    assert cfg.doc_destination(Path("/elsewhere")) == Path("/mnt/c/Users/me/Documents")


@pytest.mark.parametrize("pattern", ["/tmp/out/*.png", "", "   "])
def test_absolute_or_empty_cleanup_patterns_are_rejected(tmp_path: Path, pattern: str) -> None:
    _write(tmp_path / "buildpipe.json", {"clean_patterns": ["tests/images/output/*.png", pattern]})

    with pytest.raises(ConfigError) as ei:
        load_config(tmp_path, environ={})
    assert "clean_patterns" in str(ei.value)
