"""Freedesktop launcher entry for the GTK window."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Optional

from gpusetup import __version__, state

DESKTOP_FILE_NAME = "nvidia-setup-tool.desktop"
APP_NAME = "NVIDIA GPU Setup Tool"


def launcher_command() -> str:
    """Prefer the installed console script; fall back to ``python -m``."""
    script = shutil.which("gpusetup")
    if script:
        return f"{script} gui"
    return f"{sys.executable} -m gpusetup gui"


def render_desktop_entry(exec_command: str) -> str:
    lines = [
        "[Desktop Entry]",
        f"Version={__version__}",
        "Type=Application",
        f"Name={APP_NAME}",
        "Comment=Install NVIDIA drivers and CUDA toolkit",
        f"Exec={exec_command}",
        "Icon=video-display",
        "Terminal=false",
        "Categories=System;Settings;HardwareSettings;",
        "Keywords=NVIDIA;GPU;Driver;CUDA;Installation;",
    ]
    return "\n".join(lines) + "\n"


def desktop_entry_path(directory: Optional[Path] = None) -> Path:
    return (directory or state.applications_dir()) / DESKTOP_FILE_NAME


def install_desktop_entry(
    directory: Optional[Path] = None, exec_command: Optional[str] = None
) -> Path:
    path = desktop_entry_path(directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_desktop_entry(exec_command or launcher_command()), encoding="utf-8")
    path.chmod(0o755)
    return path


def uninstall_desktop_entry(directory: Optional[Path] = None) -> bool:
    """Remove the entry; returns False when there was nothing to remove."""
    path = desktop_entry_path(directory)
    if not path.exists():
        return False
    path.unlink()
    return True
