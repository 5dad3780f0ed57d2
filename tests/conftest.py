"""Pytest configuration and fixtures for hablar tests."""

import os
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

VENDOR_ENV_VARS = (
    "ELEVENLABS_API_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "GOOGLE_CLOUD_API_KEY",
    "GOOGLE_GENAI_API_KEY",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch) -> None:
    """Keep real credentials and user config out of every test."""
    for name in VENDOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("HABLAR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("hablar.config._cached_config", None)


@pytest.fixture
def cache_dir() -> Generator[Path]:
    """Temporary directory for cache databases and audio files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
