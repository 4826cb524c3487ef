from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from buildpipe.config import PipelineConfig

from fakes import FakeRunner


@pytest.fixture(autouse=True)
def _reset_structlog():
    # CLI tests configure logging against CliRunner's streams.
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    """Default cargo pipeline with the doc copy going under tmp_path."""
    return PipelineConfig(doc_dest=str(tmp_path / "published"))


@pytest.fixture
def built_docs(tmp_path: Path) -> Path:
    doc = tmp_path / "target" / "doc"
    (doc / "mycrate").mkdir(parents=True)
    (doc / "index.html").write_text("<html></html>", encoding="utf-8")
    (doc / "mycrate" / "index.html").write_text("<html>crate</html>", encoding="utf-8")
    return doc
