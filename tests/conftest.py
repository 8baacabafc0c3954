"""Pytest configuration and shared fixtures for muxfmt tests."""

import pytest

import muxfmt.io.logging_setup
import muxfmt.io.perf_logging

from muxfmt.dispatcher import Dispatcher
from muxfmt.engine import TemplateEngine
from muxfmt.settings import RenderOptions


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real settings file, log directory and NO_COLOR."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("MUXFMT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("MUXFMT_LOG_FILE", raising=False)
    monkeypatch.delenv("MUXFMT_LOG_LEVEL", raising=False)


@pytest.fixture
def plain_options():
    """Options with styling disabled, so rendered text is easy to compare."""
    return RenderOptions(color_enabled=False)


@pytest.fixture
def color_options():
    return RenderOptions(color_enabled=True)


@pytest.fixture
def engine(plain_options):
    return TemplateEngine(plain_options)


@pytest.fixture
def dispatcher(plain_options):
    return Dispatcher(TemplateEngine(plain_options), plain_options)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging_setup.configure() so caplog sees muxfmt records in every test."""
    yield
    muxfmt.io.logging_setup.reset()
    muxfmt.io.perf_logging.set_enabled(True)
