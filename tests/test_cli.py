from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

try:
    import tomllib  # Python 3.11+
except ImportError:  # pragma: no cover
    import tomli as tomllib

from gpusetup import __version__
from gpusetup.cli import app
from gpusetup.detection import SystemInfo
from gpusetup.events import ProgressUpdate, StatusType
from gpusetup.installer import InstallResult


def _info(**overrides) -> SystemInfo:
    values = dict(
        gpu_detected=True,
        gpu_info="Detected: NVIDIA GA106",
        driver_installed=False,
        driver_info="Not installed",
        cuda_installed=False,
        cuda_info="Not installed",
        distro_codename="jammy",
    )
    values.update(overrides)
    return SystemInfo(**values)


def _patch_detector(module: str, info: SystemInfo):
    detector = MagicMock()
    detector.return_value.run.return_value = info
    return patch(f"gpusetup.cli.commands.{module}.SystemDetector", detector)


class TestCLIBasics:
    def test_version_flag(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_version_command(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "gpusetup" in result.output

    def test_help_flag(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Commands" in result.output
        assert "Detect the NVIDIA GPU" in result.output
        assert "Install the NVIDIA driver" in result.output
        assert "status" in result.output
        assert "--verbose" in result.output

    def test_command_help_uses_custom_renderer(self, runner):
        result = runner.invoke(app, ["install", "--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output
        assert "--dry-run" in result.output
        assert "--driver" in result.output
        assert "-y" in result.output

    def test_group_help_lists_subcommands(self, runner):
        result = runner.invoke(app, ["config", "--help"])
        assert result.exit_code == 0
        assert "Commands" in result.output
        assert "validate" in result.output

    def test_no_command_launches_gui(self, runner):
        with patch("gpusetup.cli.launch_gui") as launch:
            result = runner.invoke(app, [])
        assert result.exit_code == 0
        launch.assert_called_once_with()

    def test_gui_without_pygobject(self, runner):
        with patch.dict(sys.modules, {"gpusetup.gui": None}):
            result = runner.invoke(app, ["gui"])
        assert result.exit_code == 1
        assert "Cannot start the GTK interface" in result.output


class TestDetect:
    def test_json_output(self, runner):
        with _patch_detector("detect", _info(compute_capability=(8, 6))):
            result = runner.invoke(app, ["detect", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["gpu"]["detected"] is True
        assert data["distro_codename"] == "jammy"
        assert data["compute_capability"] == "8.6"

    def test_table_output(self, runner):
        with _patch_detector("detect", _info()):
            result = runner.invoke(app, ["detect"])

        assert result.exit_code == 0
        assert "System Status" in result.output
        assert "Driver Status" in result.output
        assert "[WARN]" in result.output

    def test_no_gpu_exits_non_zero(self, runner):
        info = _info(gpu_detected=False, gpu_info="No NVIDIA GPU detected")
        with _patch_detector("detect", info):
            result = runner.invoke(app, ["detect"])
        assert result.exit_code == 1

    def test_status_alias(self, runner):
        with _patch_detector("detect", _info()):
            result = runner.invoke(app, ["status", "--json"])
        assert result.exit_code == 0

    @staticmethod
    def _chatty_detector(info: SystemInfo):
        def run(reporter=None):
            reporter.post(
                ProgressUpdate(log_message="Checking for NVIDIA GPU...", log_type=StatusType.INFO)
            )
            reporter.post(
                ProgressUpdate(
                    log_message="Distribution not recognized", log_type=StatusType.WARNING
                )
            )
            return info

        detector = MagicMock()
        detector.return_value.run.side_effect = run
        return patch("gpusetup.cli.commands.detect.SystemDetector", detector)

    def test_quiet_by_default(self, runner):
        with self._chatty_detector(_info()):
            result = runner.invoke(app, ["detect"])

        assert result.exit_code == 0
        assert "Checking for NVIDIA GPU..." not in result.output
        assert "Distribution not recognized" in result.output

    def test_verbose_shows_info_lines(self, runner):
        with self._chatty_detector(_info()):
            result = runner.invoke(app, ["-V", "detect"])

        assert result.exit_code == 0
        assert "Checking for NVIDIA GPU..." in result.output
        assert "Distribution not recognized" in result.output


class TestInstall:
    def test_requires_an_option(self, runner):
        result = runner.invoke(app, ["install", "--no-driver"])
        assert result.exit_code == 1
        assert "Please select at least one installation option." in result.output

    def test_dry_run_prints_plan(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.cli.commands.install.Installer"
        ) as installer:
            result = runner.invoke(app, ["install", "--dry-run", "--cuda"])

        assert result.exit_code == 0
        assert "Installation Plan" in result.output
        installer.assert_not_called()

    def test_dry_run_unknown_distro(self, runner):
        with _patch_detector("install", _info(distro_codename="unknown")):
            result = runner.invoke(app, ["install", "--dry-run"])
        assert result.exit_code == 1

    def test_refuses_without_gpu(self, runner):
        with _patch_detector("install", _info(gpu_detected=False)), patch(
            "gpusetup.system.is_wsl", return_value=False
        ):
            result = runner.invoke(app, ["install", "--yes"])
        assert result.exit_code == 1
        assert "No NVIDIA GPU detected" in result.output

    def test_refuses_under_wsl(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.system.is_wsl", return_value=True
        ):
            result = runner.invoke(app, ["install", "--yes"])
        assert result.exit_code == 1
        assert "WSL" in result.output

    def test_confirmation_declined(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.system.is_wsl", return_value=False
        ), patch("gpusetup.ui.confirm_action", return_value=False), patch(
            "gpusetup.cli.commands.install.Installer"
        ) as installer:
            result = runner.invoke(app, ["install"])

        assert result.exit_code == 0
        assert "Installation cancelled" in result.output
        installer.assert_not_called()

    def test_bad_password(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.system.is_wsl", return_value=False
        ), patch("gpusetup.system.is_root", return_value=False), patch(
            "gpusetup.ui.ask_password", return_value="wrong"
        ), patch(
            "gpusetup.cli.commands.install.verify_sudo_access", return_value=False
        ) as verify, patch(
            "gpusetup.cli.commands.install.Installer"
        ) as installer:
            result = runner.invoke(app, ["install", "--yes"])

        assert result.exit_code == 1
        assert "Invalid password or insufficient privileges." in result.output
        verify.assert_called_once_with("wrong")
        installer.assert_not_called()

    def test_successful_install(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.system.is_wsl", return_value=False
        ), patch("gpusetup.system.is_root", return_value=True), patch(
            "gpusetup.cli.commands.install.Installer"
        ) as installer:
            installer.return_value.run.return_value = InstallResult(
                success=True, completed_steps=5
            )
            result = runner.invoke(app, ["install", "--yes"])

        assert result.exit_code == 0
        assert "Installation completed successfully!" in result.output
        assert "Reboot" in result.output
        options = installer.return_value.run.call_args.args[0]
        assert options.driver and not options.cuda

    def test_failed_install(self, runner):
        with _patch_detector("install", _info()), patch(
            "gpusetup.system.is_wsl", return_value=False
        ), patch("gpusetup.system.is_root", return_value=True), patch(
            "gpusetup.cli.commands.install.Installer"
        ) as installer:
            installer.return_value.run.return_value = InstallResult(
                success=False,
                failed_command="sudo apt-get update",
                exit_code=100,
                reason="command",
            )
            result = runner.invoke(app, ["install", "--yes"])

        assert result.exit_code == 1
        assert "exit code 100" in result.output


class TestConfig:
    def test_init_creates_file(self, runner):
        home = Path(os.environ["GPUSETUP_HOME"])
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (home / "config.toml").exists()

    def test_init_refuses_to_overwrite(self, runner):
        runner.invoke(app, ["config", "init"])
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1

    def test_set_keeps_version_strings(self, runner):
        home = Path(os.environ["GPUSETUP_HOME"])
        result = runner.invoke(app, ["config", "set", "installer.cuda_version", "12.4"])
        assert result.exit_code == 0
        data = tomllib.loads((home / "config.toml").read_text(encoding="utf-8"))
        assert data["installer"]["cuda_version"] == "12.4"

        result = runner.invoke(app, ["config", "get", "installer.cuda_version"])
        assert result.exit_code == 0
        assert "12.4" in result.output

    def test_set_coerces_numbers(self, runner):
        home = Path(os.environ["GPUSETUP_HOME"])
        result = runner.invoke(app, ["config", "set", "gui.max_log_lines", "500"])
        assert result.exit_code == 0
        data = tomllib.loads((home / "config.toml").read_text(encoding="utf-8"))
        assert data["gui"]["max_log_lines"] == 500

    def test_set_rejects_invalid_values(self, runner):
        home = Path(os.environ["GPUSETUP_HOME"])
        runner.invoke(app, ["config", "init"])
        before = (home / "config.toml").read_text(encoding="utf-8")
        result = runner.invoke(app, ["config", "set", "gui.width", "100"])
        assert result.exit_code == 1
        assert (home / "config.toml").read_text(encoding="utf-8") == before

    def test_get_missing_key(self, runner):
        result = runner.invoke(app, ["config", "get", "installer.nope"])
        assert result.exit_code == 1
        assert "Key not found" in result.output

    def test_validate_default_config(self, runner):
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_reports_broken_file(self, runner):
        home = Path(os.environ["GPUSETUP_HOME"])
        home.mkdir(parents=True, exist_ok=True)
        (home / "config.toml").write_text("[gui]\nwidth = 10\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 1
        assert "Configuration is invalid" in result.output

    def test_path_without_file(self, runner):
        result = runner.invoke(app, ["config", "path"])
        assert result.exit_code == 0
        assert "No config file found" in result.output

    def test_show_json(self, runner):
        result = runner.invoke(app, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["installer"]["driver_package"] == "cuda-drivers"


class TestDesktop:
    def test_install_and_uninstall(self, runner, tmp_path):
        target = tmp_path / "apps"
        result = runner.invoke(app, ["desktop", "install", "--dir", str(target)])
        assert result.exit_code == 0

        entry = target / "nvidia-setup-tool.desktop"
        text = entry.read_text(encoding="utf-8")
        assert "Name=NVIDIA GPU Setup Tool" in text
        assert "Exec=" in text
        assert "Categories=System;Settings;HardwareSettings;" in text

        result = runner.invoke(app, ["desktop", "uninstall", "--dir", str(target)])
        assert result.exit_code == 0
        assert not entry.exists()

    def test_uninstall_missing_entry(self, runner, tmp_path):
        result = runner.invoke(app, ["desktop", "uninstall", "--dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No desktop entry" in result.output

    def test_default_directory_follows_xdg(self, runner):
        result = runner.invoke(app, ["desktop", "install"])
        assert result.exit_code == 0
        data_home = Path(os.environ["XDG_DATA_HOME"])
        assert (data_home / "applications" / "nvidia-setup-tool.desktop").exists()
