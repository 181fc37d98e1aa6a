"""Selection workflow.

Flow:
1. Query the service for the user's pre-selected capture target
2. No service, no selection or an error -> run the fallback picker
3. Without a stored approval token, ask the user for consent
4. Print the selection line for XDPH and flush it
5. Only then, if the user chose "Always Allow", store the new token

Step 4 must finish before step 5 starts: XDPH may kill the picker as
soon as it has read the line, and recording works without the token.
"""

import functools
import logging
from enum import Enum
from typing import Callable, Optional, TextIO

from .client import TransportClient, TransportError, get_socket_path
from .config import Config
from .consent import ConsentProvider, Decision, describe_source, select_provider
from .emit import emit
from .fallback import FallbackLauncher
from .output import WorkflowError, render, write_line
from .protocol import ProtocolError, Response, ResponseKind
from .token import generate_approval_token
from .windows import WindowTable

log = logging.getLogger(__name__)


class Outcome(Enum):
    SUCCESS = "success"
    DENIED = "denied"
    FALLBACK = "fallback"
    HARD_ERROR = "hard_error"


class SelectionWorkflow:
    """One picker invocation, from query to exit code."""

    def __init__(
        self,
        connect: Callable[[], TransportClient],
        select_consent: Callable[[], ConsentProvider],
        launcher: FallbackLauncher,
        windows: Optional[WindowTable] = None,
        stdout: Optional[TextIO] = None,
        token_factory: Callable[[], str] = generate_approval_token,
    ):
        self.connect = connect
        self.select_consent = select_consent
        self.launcher = launcher
        self.windows = windows
        self.stdout = stdout
        self.token_factory = token_factory
        self.outcome: Optional[Outcome] = None

    @classmethod
    def from_config(cls, config: Config, stdout: Optional[TextIO] = None) -> "SelectionWorkflow":
        socket_path = config.socket_path or get_socket_path()
        return cls(
            connect=functools.partial(
                TransportClient.connect,
                socket_path,
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
            ),
            select_consent=functools.partial(select_provider, config),
            launcher=FallbackLauncher(config.fallback_picker, stdout=stdout),
            stdout=stdout,
        )

    def _finish(self, outcome: Outcome, exit_code: int) -> int:
        self.outcome = outcome
        log.info("Exiting with %s (code %d)", outcome.value, exit_code)
        return exit_code

    def _query(self) -> tuple[Optional[TransportClient], Response]:
        """Connect and query. Transport failures come back as error responses."""
        try:
            client = self.connect()
        except (TransportError, ProtocolError) as e:
            log.warning("Failed to query main app: %s", e)
            return None, Response.error(str(e))

        try:
            response = client.query()
        except (TransportError, ProtocolError) as e:
            log.warning("Failed to query main app: %s", e)
            client.close()
            return None, Response.error(str(e))
        return client, response

    def _fallback(self, reason: str) -> int:
        exit_code = self.launcher.run()
        emit("fallback.completed", {
            "picker": self.launcher.binary,
            "reason": reason,
            "exit_code": exit_code,
        })
        return self._finish(Outcome.FALLBACK, exit_code)

    def run(self) -> int:
        """Run the workflow and return the process exit code."""
        client, response = self._query()
        emit("selection.received", {
            "response_type": response.kind.value,
            "source_type": response.source_type or None,
            "source_id": response.source_id or None,
            "has_approval_token": response.has_approval_token,
        })

        # client is None only when the query failed, which yields an error response
        if client is None or response.kind is not ResponseKind.SELECTION:
            if client is not None:
                client.close()
            if response.kind is ResponseKind.NO_SELECTION:
                log.info("No selection available in main app, using fallback picker")
                return self._fallback("no_selection")
            if response.kind is ResponseKind.ERROR:
                log.info("Service unavailable or failed (%s), using fallback picker", response.message)
                return self._fallback("error")
            log.error("Unexpected response to query_selection: %s", response.kind.value)
            emit("error.handled", {
                "error_type": "UnexpectedResponse",
                "message": f"Unexpected response type: {response.kind.value}",
                "stage": "query",
            })
            return self._finish(Outcome.HARD_ERROR, 1)

        with client:
            return self._handle_selection(client, response)

    def _handle_selection(self, client: TransportClient, selection: Response) -> int:
        log.info(
            "Got selection: type=%s, id=%s, has_token=%s",
            selection.source_type, selection.source_id, selection.has_approval_token,
        )

        # Rendered up front so the user is never asked about a source we cannot emit
        try:
            line = render(selection, self.windows)
        except WorkflowError as e:
            log.error("%s", e)
            emit("error.handled", {
                "error_type": type(e).__name__,
                "message": str(e),
                "stage": "render",
            })
            return self._finish(Outcome.HARD_ERROR, 1)

        token = None
        if selection.has_approval_token:
            log.info("Has approval token, auto-approving")
        else:
            description = describe_source(selection.source_type, selection.source_id)
            log.info("No approval token, asking for consent")
            decision = self.select_consent().ask(description)
            emit("consent.decided", {"decision": decision.value, "description": description})

            if decision is Decision.DENIED:
                log.info("User denied, exiting")
                return self._finish(Outcome.DENIED, 1)
            if decision is Decision.ALWAYS_ALLOW:
                token = self.token_factory()

        return self._deliver(client, line, token)

    def _deliver(self, client: TransportClient, line: str, token: Optional[str]) -> int:
        log.info("Output: %s", line)
        write_line(line, self.stdout)
        emit("selection.emitted", {"output": line, "persist_token": token is not None})

        # Only reached once the line is flushed
        if token is not None:
            self._persist(client, token)
        return self._finish(Outcome.SUCCESS, 0)

    def _persist(self, client: TransportClient, token: str) -> None:
        """Store the approval token. Failure is logged, never fatal."""
        log.info("Storing approval token via IPC...")
        error_message = None
        try:
            stored = client.store_token(token)
        except (TransportError, ProtocolError) as e:
            stored = False
            error_message = str(e)

        if stored:
            log.info("Token stored successfully")
        else:
            log.warning("Failed to store token%s", f": {error_message}" if error_message else "")
        emit("token.stored", {"success": stored, "error_message": error_message})


def dry_run(
    consent: ConsentProvider,
    source_type: str,
    source_id: str,
    token_factory: Callable[[], str] = generate_approval_token,
) -> int:
    """Ask for consent without talking to the service. Nothing is stored."""
    log.info("[dry-run] Testing dialog with source_type=%s, source_id=%s", source_type, source_id)
    decision = consent.ask(describe_source(source_type, source_id))

    if decision is Decision.ALWAYS_ALLOW:
        log.info("[dry-run] Result: APPROVED (always_allow=true)")
        log.info("[dry-run] Generated token: %s", token_factory())
        log.info("[dry-run] (Token not stored in dry-run mode)")
        return 0
    if decision is Decision.ALLOW_ONCE:
        log.info("[dry-run] Result: APPROVED (always_allow=false)")
        return 0
    log.info("[dry-run] Result: DENIED")
    return 1
