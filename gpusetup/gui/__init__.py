"""GTK3 front end. Importing this package requires PyGObject and a display."""

from __future__ import annotations

from typing import Optional

import gi

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk  # noqa: E402

from gpusetup.configuration.schema import GpuSetupConfig  # noqa: E402

from .styles import install_css  # noqa: E402
from .window import SetupWindow  # noqa: E402


def run_gui(config: Optional[GpuSetupConfig] = None) -> None:
    """Build the window, start the first detection and block in the GTK loop."""
    install_css()
    window = SetupWindow(config)
    window.connect("destroy", Gtk.main_quit)
    window.show_all()
    window.progress_frame.hide()
    window.start_detection()
    Gtk.main()


__all__ = ["SetupWindow", "run_gui"]
