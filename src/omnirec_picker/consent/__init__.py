"""Screen recording consent.

A consent provider shows the user what is about to be shared and returns
their decision. Two providers exist:

- GtkConsent: embedded GTK 3 dialog (needs PyGObject and a display)
- ExternalDialogConsent: delegates to hyprland-dialog

select_provider() picks one at startup, embedded first.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..config import Config

log = logging.getLogger(__name__)

DIALOG_TITLE = "OmniRec - Screen Recording Permission"
DIALOG_QUESTION = "Allow OmniRec to record your screen?"


class Decision(Enum):
    ALWAYS_ALLOW = "always_allow"
    ALLOW_ONCE = "allow_once"
    DENIED = "denied"

    @property
    def approved(self) -> bool:
        return self is not Decision.DENIED


class ConsentProvider(Protocol):
    def ask(self, description: str) -> Decision:
        """Block until the user decides. No timeout."""
        ...


def describe_source(source_type: str, source_id: str) -> str:
    """Human-readable description of a capture source."""
    if source_type == "monitor":
        return f"Display: {source_id}"
    if source_type == "window":
        return f"Window: {source_id}"
    if source_type == "region":
        return f"Region on: {source_id}"
    return f"Source: {source_id}"


def select_provider(config: "Config") -> ConsentProvider:
    """Choose the consent provider named by config.consent_backend.

    "auto" probes the embedded GTK dialog first and falls back to the
    external dialog binary.
    """
    from .external import ExternalDialogConsent

    backend = config.consent_backend
    if backend in ("auto", "gtk"):
        from .dialog import GtkConsent, gtk_available

        if gtk_available():
            log.debug("Using embedded GTK consent dialog")
            return GtkConsent()
        if backend == "gtk":
            log.warning("GTK consent dialog unavailable, using %s", config.dialog_binary)

    log.debug("Using external consent dialog: %s", config.dialog_binary)
    return ExternalDialogConsent(config.dialog_binary)


__all__ = [
    "ConsentProvider",
    "Decision",
    "describe_source",
    "select_provider",
]
