"""Fail-fast runner for a project's lint/build/test/doc pipeline."""

__version__ = "0.1.0"
