"""Length-prefixed JSON messages exchanged with the OmniRec service.

Every frame is a 4-byte little-endian length followed by that many bytes
of compact JSON. Requests and responses are tagged by their "type" field.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .token import is_valid_token

log = logging.getLogger(__name__)

HEADER_SIZE = 4
MAX_FRAME_SIZE = 65536


class ProtocolError(Exception):
    """Raised when a frame violates the wire protocol."""
    pass


class OversizedFrame(ProtocolError):
    """Raised when a frame declares a body larger than MAX_FRAME_SIZE."""

    def __init__(self, length: int):
        super().__init__(f"Response too large: {length} bytes")
        self.length = length


class ResponseKind(Enum):
    SELECTION = "selection"
    NO_SELECTION = "no_selection"
    ERROR = "error"
    TOKEN_VALID = "token_valid"
    TOKEN_INVALID = "token_invalid"
    TOKEN_STORED = "token_stored"


# "ok" is an older spelling of token_stored still sent by the service
_TAG_ALIASES = {"ok": ResponseKind.TOKEN_STORED}


@dataclass
class Geometry:
    """Region rectangle. x/y may be negative on multi-monitor layouts."""

    x: int
    y: int
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class Request:
    """A request sent to the service."""

    type: str
    token: Optional[str] = None

    @classmethod
    def query_selection(cls) -> "Request":
        return cls(type="query_selection")

    @classmethod
    def store_token(cls, token: str) -> "Request":
        if not is_valid_token(token):
            raise ValueError("Approval token must be 64 lowercase hex characters")
        return cls(type="store_token", token=token)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"type": self.type}
        if self.token is not None:
            payload["token"] = self.token
        return payload


@dataclass
class Response:
    """A decoded service response.

    Only the fields belonging to ``kind`` are meaningful; the rest keep
    their defaults.
    """

    kind: ResponseKind
    source_type: str = ""
    source_id: str = ""
    geometry: Optional[Geometry] = None
    has_approval_token: bool = False
    message: str = ""

    @classmethod
    def error(cls, message: str) -> "Response":
        return cls(kind=ResponseKind.ERROR, message=message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"type": self.kind.value}
        if self.kind is ResponseKind.SELECTION:
            payload["source_type"] = self.source_type
            payload["source_id"] = self.source_id
            payload["has_approval_token"] = self.has_approval_token
            if self.geometry is not None:
                payload["geometry"] = self.geometry.to_dict()
        elif self.kind is ResponseKind.ERROR:
            payload["message"] = self.message
        return payload


def frame(body: bytes) -> bytes:
    """Prefix a body with its 4-byte little-endian length."""
    return len(body).to_bytes(HEADER_SIZE, byteorder="little") + body


def encode(payload: dict) -> bytes:
    """Serialize a JSON object into one frame."""
    body = json.dumps(payload, separators=(",", ":")).encode("utf8")
    return frame(body)


def encode_request(request: Request) -> bytes:
    return encode(request.to_dict())


def read_length(header: bytes) -> int:
    """Return the body length declared by a frame header.

    Raises:
        OversizedFrame: If the declared length exceeds MAX_FRAME_SIZE
    """
    length = int.from_bytes(header, byteorder="little")
    if length > MAX_FRAME_SIZE:
        raise OversizedFrame(length)
    return length


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _geometry(value: Any) -> Optional[Geometry]:
    if not isinstance(value, dict):
        return None
    return Geometry(
        x=_int(value.get("x")),
        y=_int(value.get("y")),
        width=max(0, _int(value.get("width"))),
        height=max(0, _int(value.get("height"))),
    )


def decode_response(body: bytes) -> Response:
    """Decode a response body.

    Never raises: malformed JSON and unknown tags come back as error
    responses so callers handle a single shape.
    """
    try:
        obj = json.loads(body.decode("utf8"))
    except (UnicodeDecodeError, ValueError) as e:
        return Response.error(f"Failed to parse response: {e}")

    if not isinstance(obj, dict):
        return Response.error("Failed to parse response: expected a JSON object")

    tag = _str(obj.get("type"))
    kind = _TAG_ALIASES.get(tag)
    if kind is None:
        try:
            kind = ResponseKind(tag)
        except ValueError:
            log.debug("Unknown response type: %r", tag)
            return Response.error(f"Unknown response type: {tag}")

    if kind is ResponseKind.SELECTION:
        return Response(
            kind=kind,
            source_type=_str(obj.get("source_type")),
            source_id=_str(obj.get("source_id")),
            geometry=_geometry(obj.get("geometry")),
            has_approval_token=obj.get("has_approval_token") is True,
        )
    if kind is ResponseKind.ERROR:
        return Response.error(_str(obj.get("message")))
    return Response(kind=kind)
