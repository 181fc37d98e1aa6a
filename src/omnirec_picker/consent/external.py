"""Consent via an external dialog binary (hyprland-dialog)."""

import logging
import subprocess

from . import DIALOG_TITLE, Decision

log = logging.getLogger(__name__)

DEFAULT_DIALOG_BINARY = "hyprland-dialog"

BUTTONS = {
    "Always Allow": Decision.ALWAYS_ALLOW,
    "Allow Once": Decision.ALLOW_ONCE,
    "Deny": Decision.DENIED,
}


class ExternalDialogConsent:
    """Runs hyprland-dialog and maps the button label it prints.

    Any other output, or a dialog that cannot be started, is Deny.
    """

    def __init__(self, binary: str = DEFAULT_DIALOG_BINARY):
        self.binary = binary

    def command(self, description: str) -> list[str]:
        text = f"OmniRec is requesting permission to record your screen.\n\n{description}"
        return [
            self.binary,
            "--title", DIALOG_TITLE,
            "--text", text,
            "--buttons", ";".join(BUTTONS),
        ]

    def ask(self, description: str) -> Decision:
        try:
            result = subprocess.run(
                self.command(description),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            log.error("Could not run consent dialog '%s': %s", self.binary, e)
            return Decision.DENIED

        response = result.stdout.strip()
        log.debug("%s response: %r (exit: %d)", self.binary, response, result.returncode)
        decision = BUTTONS.get(response, Decision.DENIED)
        log.info("Consent dialog result: %s", decision.value)
        return decision
