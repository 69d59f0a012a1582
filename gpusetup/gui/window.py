"""Main setup window: status cards, install options, progress console."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

from gi.repository import GLib, Gtk

from gpusetup import __version__, system
from gpusetup.configuration import get_config
from gpusetup.configuration.schema import GpuSetupConfig
from gpusetup.detection import SystemDetector, SystemInfo, status_cards
from gpusetup.events import (
    CallbackReporter,
    ConsoleBuffer,
    ProgressUpdate,
    StatusType,
)
from gpusetup.installer import (
    CommandRunner,
    InstallError,
    Installer,
    InstallOptions,
    InstallResult,
    run_and_notify,
    verify_sudo_access,
)

from . import dialogs
from .styles import set_status_class

APP_TITLE = "NVIDIA GPU Setup Tool"
INSTALL_LABEL = "[INSTALL] Start"

_PLACEHOLDER_CARDS = (
    ("NVIDIA GPU Detection", "[DETECT]", "Checking for compatible GPU..."),
    ("Driver Status", "[DRIVER]", "Checking current installation..."),
    ("CUDA Status", "[CUDA]", "Checking CUDA availability..."),
)


def _framed_box(title: str) -> Tuple[Gtk.Frame, Gtk.Box]:
    frame = Gtk.Frame(label=title)
    frame.get_style_context().add_class("status-frame")
    box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
    box.set_border_width(15)
    frame.add(box)
    return frame, box


def _left_label(text: str) -> Gtk.Label:
    label = Gtk.Label(label=text)
    label.set_halign(Gtk.Align.START)
    return label


class SetupWindow(Gtk.Window):
    def __init__(self, config: Optional[GpuSetupConfig] = None):
        super().__init__(title=APP_TITLE)
        self.config = config or get_config()
        self.info = SystemInfo()
        self.installation_running = False
        self._console = ConsoleBuffer(self.config.gui.max_log_lines)
        self._cards: Dict[str, Tuple[Gtk.Label, Gtk.Label]] = {}

        self.set_default_size(self.config.gui.width, self.config.gui.height)
        self.set_position(Gtk.WindowPosition.CENTER)

        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=10)
        main_box.set_border_width(20)
        self.add(main_box)

        self._build_header(main_box)
        self._build_status(main_box)
        self._build_options(main_box)
        self._build_progress(main_box)
        self._build_buttons(main_box)

    # -- layout ---------------------------------------------------------------

    def _build_header(self, container: Gtk.Box) -> None:
        header = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=5)
        container.pack_start(header, False, False, 0)

        title = Gtk.Label(label="NVIDIA GPU SETUP")
        title.get_style_context().add_class("title-label")
        header.pack_start(title, False, False, 0)

        subtitle = Gtk.Label(
            label=(
                "Automatic Driver & CUDA Installation for Live Boot Linux Systems "
                f"(v{__version__})"
            )
        )
        subtitle.get_style_context().add_class("subtitle-label")
        header.pack_start(subtitle, False, False, 0)

        wsl_notice = Gtk.Label(
            label="WSL users: This tool requires a live boot Linux system for GPU access"
        )
        wsl_notice.get_style_context().add_class("subtitle-label")
        wsl_notice.set_margin_top(10)
        header.pack_start(wsl_notice, False, False, 0)

    def _build_status(self, container: Gtk.Box) -> None:
        frame, box = _framed_box("System Status")
        container.pack_start(frame, False, False, 0)

        for title, icon, text in _PLACEHOLDER_CARDS:
            row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
            box.pack_start(row, False, False, 0)

            icon_label = Gtk.Label()
            icon_label.set_markup(
                f"<span size='large'><b>{GLib.markup_escape_text(icon)}</b></span>"
            )
            row.pack_start(icon_label, False, False, 0)

            text_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=2)
            row.pack_start(text_box, True, True, 0)

            title_label = _left_label(title)
            title_label.set_markup(f"<b>{GLib.markup_escape_text(title)}</b>")
            text_box.pack_start(title_label, False, False, 0)

            status_label = _left_label(text)
            text_box.pack_start(status_label, False, False, 0)

            self._cards[title] = (icon_label, status_label)

    def _build_options(self, container: Gtk.Box) -> None:
        frame, box = _framed_box("Installation Options")
        container.pack_start(frame, False, False, 0)

        self.driver_check = Gtk.CheckButton(
            label="Install NVIDIA Driver (Latest Proprietary)"
        )
        self.driver_check.set_active(True)
        box.pack_start(self.driver_check, False, False, 0)
        box.pack_start(
            _left_label(
                "    • Installs latest NVIDIA proprietary driver for optimal performance"
            ),
            False,
            False,
            0,
        )

        self.cuda_check = Gtk.CheckButton(
            label=f"Install CUDA Toolkit ({self.config.installer.cuda_version})"
        )
        box.pack_start(self.cuda_check, False, False, 0)
        box.pack_start(
            _left_label(
                "    • Installs CUDA for GPU computing and sets up environment variables"
            ),
            False,
            False,
            0,
        )

    def _build_progress(self, container: Gtk.Box) -> None:
        self.progress_frame, box = _framed_box("Installation Progress")
        container.pack_start(self.progress_frame, True, True, 0)

        self.progress_bar = Gtk.ProgressBar()
        self.progress_bar.set_show_text(True)
        box.pack_start(self.progress_bar, False, False, 0)

        self.progress_label = _left_label("Ready to start...")
        box.pack_start(self.progress_label, False, False, 0)

        scroll = Gtk.ScrolledWindow()
        scroll.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        scroll.set_size_request(-1, 200)
        box.pack_start(scroll, True, True, 0)

        self.console_view = Gtk.TextView()
        self.console_view.set_editable(False)
        self.console_view.set_cursor_visible(False)
        self.console_view.set_monospace(True)
        self.console_view.get_style_context().add_class("console-view")
        self.console_text = self.console_view.get_buffer()
        self._console_end = self.console_text.create_mark(
            "console-end", self.console_text.get_end_iter(), False
        )
        scroll.add(self.console_view)

    def _build_buttons(self, container: Gtk.Box) -> None:
        box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
        box.set_halign(Gtk.Align.CENTER)
        container.pack_start(box, False, False, 0)

        self.detect_button = Gtk.Button(label="[DETECT] System")
        self.detect_button.set_size_request(150, 40)
        self.detect_button.connect("clicked", self._on_detect_clicked)
        box.pack_start(self.detect_button, False, False, 0)

        self.install_button = Gtk.Button(label=INSTALL_LABEL)
        self.install_button.set_size_request(180, 40)
        self.install_button.connect("clicked", self._on_install_clicked)
        box.pack_start(self.install_button, False, False, 0)

        close_button = Gtk.Button(label="[CLOSE]")
        close_button.set_size_request(120, 40)
        close_button.connect("clicked", lambda _button: self.destroy())
        box.pack_start(close_button, False, False, 0)

    # -- main-loop side -------------------------------------------------------

    def _reporter(self) -> CallbackReporter:
        return CallbackReporter(lambda update: GLib.idle_add(self._apply_update, update))

    def _apply_update(self, update: ProgressUpdate) -> bool:
        if update.moves_bar:
            self.progress_bar.set_fraction(update.fraction)
            self.progress_bar.set_text(update.message)
            self.progress_label.set_text(update.message)
        if update.log_message:
            self.append_log(update.log_message, update.log_type)
        return GLib.SOURCE_REMOVE

    def append_log(self, message: str, status: StatusType = StatusType.INFO) -> None:
        full = len(self._console) >= self._console.max_lines
        line = self._console.append(message, status)
        if full:
            start = self.console_text.get_start_iter()
            end = self.console_text.get_iter_at_line(1)
            self.console_text.delete(start, end)
        self.console_text.insert(self.console_text.get_end_iter(), f"{line}\n")
        self.console_view.scroll_mark_onscreen(self._console_end)

    def _update_status_display(self) -> None:
        for card in status_cards(self.info):
            icon_label, status_label = self._cards[card.title]
            icon_label.set_markup(
                f"<span size='large'>{GLib.markup_escape_text(card.icon)}</span>"
            )
            status_label.set_text(card.text)
            set_status_class(status_label, card.status)

    # -- detection ------------------------------------------------------------

    def start_detection(self) -> None:
        self.detect_button.set_sensitive(False)
        threading.Thread(target=self._detection_worker, daemon=True).start()

    def _detection_worker(self) -> None:
        info = SystemDetector(self.config).run(self._reporter())
        GLib.idle_add(self._on_detection_done, info)

    def _on_detection_done(self, info: SystemInfo) -> bool:
        self.info = info
        self._update_status_display()
        if not self.installation_running:
            self.detect_button.set_sensitive(True)
        return GLib.SOURCE_REMOVE

    def _on_detect_clicked(self, _button: Gtk.Button) -> None:
        if self.installation_running:
            return
        self.append_log("Running system detection...")
        self.start_detection()

    # -- installation ---------------------------------------------------------

    def _on_install_clicked(self, _button: Gtk.Button) -> None:
        if self.installation_running:
            return

        if system.is_wsl():
            dialogs.show_error(self, "WSL Environment Detected", dialogs.WSL_MESSAGE)
            return
        if not self.info.gpu_detected:
            dialogs.show_error(
                self, "Error", "No NVIDIA GPU detected. Installation cannot proceed."
            )
            return

        options = InstallOptions(
            driver=self.driver_check.get_active(), cuda=self.cuda_check.get_active()
        )
        try:
            options.validate()
        except InstallError as exc:
            dialogs.show_warning(self, "Warning", str(exc))
            return

        if not dialogs.confirm(self, "Confirm Installation", options.confirmation_text()):
            return

        password = None
        if self.config.installer.use_sudo and not system.is_root():
            password = dialogs.ask_password(self)
            if password is None:
                return
            if not verify_sudo_access(password):
                dialogs.show_error(
                    self, "Error", "Invalid password or insufficient privileges."
                )
                return

        self.installation_running = True
        self.progress_frame.show()
        self.install_button.set_sensitive(False)
        self.detect_button.set_sensitive(False)
        self.install_button.set_label("Installing...")
        self.append_log("Starting installation process...")

        runner = CommandRunner.from_config(self.config, password)
        threading.Thread(
            target=run_and_notify,
            args=(
                Installer(self.config, runner),
                options,
                self.info,
                self._reporter(),
                lambda result: GLib.idle_add(self._on_installation_done, result),
            ),
            daemon=True,
        ).start()

    def _on_installation_done(self, result: InstallResult) -> bool:
        self.installation_running = False
        self.install_button.set_sensitive(True)
        self.detect_button.set_sensitive(True)
        self.install_button.set_label(INSTALL_LABEL)

        if result.success:
            if dialogs.confirm(self, "Installation Complete", dialogs.COMPLETION_MESSAGE):
                self.append_log("Rebooting...", StatusType.WARNING)
                outcome = system.run_command(["systemctl", "reboot"])
                if not outcome.ok:
                    self.append_log(
                        f"Reboot failed: {outcome.output.strip()}", StatusType.ERROR
                    )
        else:
            dialogs.show_error(self, "Installation Failed", dialogs.FAILURE_MESSAGE)
        return GLib.SOURCE_REMOVE
