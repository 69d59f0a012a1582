from __future__ import annotations

from gpusetup import state
from gpusetup.configuration import reload_config


def test_downloads_follow_gpusetup_home(tmp_path, monkeypatch):
    monkeypatch.setenv("GPUSETUP_HOME", str(tmp_path / "home"))
    path = state.downloads_dir()
    assert path == (tmp_path / "home").resolve() / "downloads"
    assert path.is_dir()


def test_config_file_does_not_move_downloads(tmp_path, monkeypatch):
    config_home = tmp_path / "config"
    (config_home / "gpusetup").mkdir(parents=True)
    (config_home / "gpusetup" / "config.toml").write_text("", encoding="utf-8")
    monkeypatch.delenv("GPUSETUP_HOME", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    reload_config()

    assert state.state_root() == (config_home / "gpusetup").resolve()
    assert state.downloads_dir() == tmp_path / "cache" / "gpusetup"


def test_applications_dir_uses_xdg_data_home(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    assert state.applications_dir() == tmp_path / "data" / "applications"
