from __future__ import annotations

import pytest
from typer.testing import CliRunner

from gpusetup import state
from gpusetup.configuration import reload_config
from gpusetup.configuration.loader import locate_config_file


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_config(tmp_path, monkeypatch):
    """Force configuration artifacts into a temporary directory per test."""
    home = tmp_path / "gpusetup-home"
    monkeypatch.setenv("GPUSETUP_HOME", str(home))
    monkeypatch.delenv("GPUSETUP_CONFIG", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    state.clear_state_root_override()
    locate_config_file.cache_clear()
    reload_config()
    yield
    state.clear_state_root_override()
    locate_config_file.cache_clear()
