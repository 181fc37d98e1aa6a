"""Unix socket client for the OmniRec service.

One connection serves both calls the picker makes, in order:
query_selection, then (optionally) store_token. All waits are bounded:
connect by connect_timeout, and every individual read stall by
read_timeout.
"""

import logging
import os
import socket
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from .protocol import (
    HEADER_SIZE,
    Request,
    Response,
    ResponseKind,
    decode_response,
    encode_request,
    read_length,
)

log = logging.getLogger(__name__)

SOCKET_SUBPATH = Path("omnirec") / "service.sock"
DEFAULT_CONNECT_TIMEOUT = 3.0
DEFAULT_READ_TIMEOUT = 5.0


class TransportError(Exception):
    """Raised when talking to the service fails."""
    pass


class ConnectTimeout(TransportError):
    pass


class ServiceUnavailable(TransportError):
    """The socket is missing or refused the connection."""
    pass


class ReadTimeout(TransportError):
    pass


class UnexpectedClose(TransportError):
    pass


def _owner_runtime_dir() -> str:
    getuid = getattr(os, "getuid", None)
    if getuid is None:
        return ""
    return f"/run/user/{getuid()}"


def resolve_runtime_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Pick the runtime directory: $XDG_RUNTIME_DIR, /run/user/<uid>, then tmp."""
    env = os.environ if environ is None else environ
    candidates = (
        env.get("XDG_RUNTIME_DIR", ""),
        _owner_runtime_dir(),
        tempfile.gettempdir(),
    )
    for candidate in candidates:
        if candidate:
            return Path(candidate)
    return Path("/tmp")


def get_socket_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    return resolve_runtime_dir(environ) / SOCKET_SUBPATH


class TransportClient:
    """Blocking request/response client over a connected stream socket."""

    def __init__(self, sock: socket.socket, read_timeout: float = DEFAULT_READ_TIMEOUT):
        self._sock = sock
        self.read_timeout = read_timeout
        # recv() returns immediately when bytes are buffered and only waits
        # up to read_timeout when nothing has arrived yet.
        self._sock.settimeout(read_timeout)

    @classmethod
    def connect(
        cls,
        path: Path,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> "TransportClient":
        """Open a connection to the service socket.

        Raises:
            ConnectTimeout: If the connection is not established in time
            ServiceUnavailable: If the socket is missing or refuses
        """
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(connect_timeout)
        try:
            sock.connect(str(path))
        except socket.timeout:
            sock.close()
            raise ConnectTimeout(f"Timed out connecting to service at {path}")
        except OSError as e:
            sock.close()
            raise ServiceUnavailable(
                f"Failed to connect to service (is it running?): {e} (path: {path})"
            )
        log.debug("Connected to %s", path)
        return cls(sock, read_timeout=read_timeout)

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            pass

    def __enter__(self) -> "TransportClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _send(self, request: Request) -> None:
        try:
            self._sock.sendall(encode_request(request))
        except socket.timeout:
            raise ReadTimeout(f"Timed out sending {request.type} request")
        except OSError as e:
            raise UnexpectedClose(f"Failed to send {request.type} request: {e}")

    def _recv_exact(self, size: int, what: str) -> bytes:
        buf = bytearray()
        while len(buf) < size:
            try:
                chunk = self._sock.recv(size - len(buf))
            except socket.timeout:
                raise ReadTimeout(f"Timeout waiting for response {what}")
            except OSError as e:
                raise UnexpectedClose(f"Failed to read response {what}: {e}")
            if not chunk:
                raise UnexpectedClose(
                    f"Connection closed after {len(buf)} of {size} bytes of response {what}"
                )
            buf += chunk
        return bytes(buf)

    def _read_response(self) -> Response:
        header = self._recv_exact(HEADER_SIZE, "length")
        length = read_length(header)
        body = self._recv_exact(length, "body")
        return decode_response(body)

    def request(self, request: Request) -> Response:
        """Send one request and read exactly one response frame.

        Raises:
            TransportError: On timeout or unexpected close
            OversizedFrame: If the response declares a body over 64 KiB
        """
        self._send(request)
        return self._read_response()

    def query(self) -> Response:
        """Ask the service for the current capture selection."""
        return self.request(Request.query_selection())

    def store_token(self, token: str) -> bool:
        """Ask the service to persist an approval token.

        Returns:
            True if the service confirmed storage, False otherwise
        """
        response = self.request(Request.store_token(token))
        if response.kind is ResponseKind.TOKEN_STORED:
            return True
        if response.kind is ResponseKind.ERROR:
            log.warning("Service rejected approval token: %s", response.message)
        else:
            log.warning("Unexpected response type to store_token: %s", response.kind.value)
        return False
