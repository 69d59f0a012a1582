"""Modal dialogs used by the setup window."""

from __future__ import annotations

from typing import Optional

from gi.repository import Gtk

COMPLETION_MESSAGE = (
    "Installation completed successfully!\n\n"
    "Please reboot your system to load the drivers.\n\n"
    "After reboot, verify with:\n"
    "• nvidia-smi (for driver)\n"
    "• nvcc --version (for CUDA)\n\n"
    "Would you like to reboot now?"
)

FAILURE_MESSAGE = (
    "Installation failed. Please check the console output for details.\n\n"
    "Ensure you have internet access and sufficient disk space."
)

WSL_MESSAGE = (
    "This tool cannot install NVIDIA drivers in WSL.\n\n"
    "This tool is designed for live boot Linux systems.\n\n"
    "To use this tool:\n"
    "1. Create a live USB with Ubuntu/Debian\n"
    "2. Boot from the USB on the target system\n"
    "3. Run this tool on the live system"
)


def _message_dialog(
    parent: Gtk.Window,
    message_type: Gtk.MessageType,
    buttons: Gtk.ButtonsType,
    title: str,
    message: str,
) -> Gtk.ResponseType:
    dialog = Gtk.MessageDialog(
        transient_for=parent,
        modal=True,
        message_type=message_type,
        buttons=buttons,
        text=title,
    )
    dialog.format_secondary_text(message)
    try:
        return dialog.run()
    finally:
        dialog.destroy()


def show_error(parent: Gtk.Window, title: str, message: str) -> None:
    _message_dialog(parent, Gtk.MessageType.ERROR, Gtk.ButtonsType.OK, title, message)


def show_warning(parent: Gtk.Window, title: str, message: str) -> None:
    _message_dialog(parent, Gtk.MessageType.WARNING, Gtk.ButtonsType.OK, title, message)


def confirm(parent: Gtk.Window, title: str, message: str) -> bool:
    response = _message_dialog(
        parent, Gtk.MessageType.QUESTION, Gtk.ButtonsType.YES_NO, title, message
    )
    return response == Gtk.ResponseType.YES


def ask_password(parent: Gtk.Window) -> Optional[str]:
    """Hidden-entry prompt; returns None when the user cancels."""
    dialog = Gtk.Dialog(title="Authentication Required", transient_for=parent, modal=True)
    dialog.add_buttons(
        "Cancel", Gtk.ResponseType.CANCEL,
        "OK", Gtk.ResponseType.OK,
    )
    dialog.set_default_response(Gtk.ResponseType.OK)
    dialog.set_default_size(400, 150)

    content = dialog.get_content_area()
    content.set_border_width(20)
    label = Gtk.Label(
        label="This operation requires administrator privileges.\nPlease enter your password:"
    )
    content.pack_start(label, False, False, 10)

    entry = Gtk.Entry()
    entry.set_visibility(False)
    entry.set_activates_default(True)
    content.pack_start(entry, False, False, 10)

    dialog.show_all()
    entry.grab_focus()
    try:
        if dialog.run() == Gtk.ResponseType.OK:
            return entry.get_text()
        return None
    finally:
        dialog.destroy()
