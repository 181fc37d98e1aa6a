"""Embedded GTK 3 consent dialog."""

import logging
import sys

from . import DIALOG_QUESTION, DIALOG_TITLE, Decision

log = logging.getLogger(__name__)

# Gtk.ResponseType values are negative; custom responses must be positive
RESPONSE_ALWAYS_ALLOW = 1
RESPONSE_ALLOW_ONCE = 2
RESPONSE_DENY = 3

_RESPONSES = {
    RESPONSE_ALWAYS_ALLOW: Decision.ALWAYS_ALLOW,
    RESPONSE_ALLOW_ONCE: Decision.ALLOW_ONCE,
}


def _load_gtk():
    import gi
    gi.require_version("Gtk", "3.0")
    from gi.repository import Gtk
    return Gtk


def gtk_available() -> bool:
    """Check that PyGObject is installed and a display can be opened."""
    try:
        Gtk = _load_gtk()
    except (ImportError, ValueError) as e:
        log.debug("GTK unavailable: %s", e)
        return False

    initialized, _ = Gtk.init_check(sys.argv)
    if not initialized:
        log.debug("GTK could not open a display")
    return initialized


class GtkConsent:
    """Asks for consent with a modal GTK dialog.

    Closing the dialog or pressing Escape counts as Deny.
    """

    def ask(self, description: str) -> Decision:
        Gtk = _load_gtk()

        dialog = Gtk.Dialog(title=DIALOG_TITLE, modal=True)
        dialog.set_keep_above(True)
        dialog.set_resizable(False)
        dialog.set_position(Gtk.WindowPosition.CENTER)
        dialog.set_default_size(400, -1)

        dialog.add_button("Deny", RESPONSE_DENY)
        dialog.add_button("Allow Once", RESPONSE_ALLOW_ONCE)
        always = dialog.add_button("Always Allow", RESPONSE_ALWAYS_ALLOW)
        always.get_style_context().add_class("suggested-action")
        dialog.set_default_response(RESPONSE_ALWAYS_ALLOW)

        header = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=16)
        icon = Gtk.Image.new_from_icon_name("dialog-question", Gtk.IconSize.DIALOG)
        header.pack_start(icon, False, False, 0)

        text = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=8)
        title = Gtk.Label(xalign=0)
        title.set_markup(f"<b><big>{DIALOG_QUESTION}</big></b>")
        title.set_line_wrap(True)
        text.pack_start(title, False, False, 0)

        desc = Gtk.Label(label=description, xalign=0)
        desc.set_line_wrap(True)
        desc.get_style_context().add_class("dim-label")
        text.pack_start(desc, False, False, 0)
        header.pack_start(text, True, True, 0)

        content = dialog.get_content_area()
        content.set_border_width(24)
        content.set_spacing(16)
        content.pack_start(header, True, True, 0)

        dialog.show_all()
        response = dialog.run()
        dialog.destroy()
        # Let the compositor unmap the dialog before we print and exit
        while Gtk.events_pending():
            Gtk.main_iteration()

        decision = _RESPONSES.get(response, Decision.DENIED)
        log.info("Consent dialog result: %s", decision.value)
        return decision
