"""Dark theme shared by every widget in the window."""

from __future__ import annotations

from gi.repository import Gdk, Gtk

from gpusetup.events import StatusType
from gpusetup.logging import PALETTE

CSS = f"""
window {{
    background: linear-gradient(135deg, {PALETTE['bg']} 0%, {PALETTE['bg_alt']} 50%, {PALETTE['bg_offset']} 100%);
    color: #ffffff;
}}
.title-label {{
    font-size: 24px;
    font-weight: bold;
    color: {PALETTE['nvidia']};
    margin: 20px;
}}
.subtitle-label {{
    font-size: 12px;
    color: {PALETTE['fg_muted']};
    margin-bottom: 20px;
}}
.status-frame {{
    background: rgba(255, 255, 255, 0.05);
    border-radius: 10px;
    border: 1px solid rgba(255, 255, 255, 0.1);
    margin: 10px;
    padding: 15px;
}}
.status-success {{ color: {PALETTE['green']}; }}
.status-warning {{ color: {PALETTE['yellow']}; }}
.status-error {{ color: {PALETTE['red']}; }}
.status-info {{ color: {PALETTE['cyan']}; }}
.console-view, .console-view text {{
    background: #000000;
    color: {PALETTE['console_fg']};
    font-family: monospace;
}}
"""

STATUS_CLASSES = {
    StatusType.SUCCESS: "status-success",
    StatusType.WARNING: "status-warning",
    StatusType.ERROR: "status-error",
    StatusType.INFO: "status-info",
}


def install_css() -> None:
    provider = Gtk.CssProvider()
    provider.load_from_data(CSS.encode("utf-8"))
    Gtk.StyleContext.add_provider_for_screen(
        Gdk.Screen.get_default(),
        provider,
        Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION,
    )


def set_status_class(widget: Gtk.Widget, status: StatusType) -> None:
    """Swap the status colour class on ``widget``; UNKNOWN clears it."""
    context = widget.get_style_context()
    for css_class in STATUS_CLASSES.values():
        context.remove_class(css_class)
    css_class = STATUS_CLASSES.get(status)
    if css_class:
        context.add_class(css_class)
