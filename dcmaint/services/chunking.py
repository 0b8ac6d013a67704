"""
Payload encoding and chunking for attachment storage.

Stored payloads are data URLs (``data:<mime>;base64,<body>``), the format
existing records were written in. Readers also accept a bare base64 body.
"""

import base64
import binascii
import math


class PayloadDecodeError(ValueError):
    """Raised when a reassembled payload is not valid base64."""


def encode_data_url(content: bytes, content_type: str) -> str:
    """
    Encode raw file bytes as a base64 data URL.

    Args:
        content: File content bytes
        content_type: MIME type recorded in the URL header

    Returns:
        Data URL text
    """
    body = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{body}"


def decode_data_url(payload: str) -> tuple[bytes, str | None]:
    """
    Decode a data URL (or bare base64 text) back into bytes.

    Args:
        payload: Reassembled payload text

    Returns:
        Tuple of (content bytes, MIME type from the header or None)

    Raises:
        PayloadDecodeError: If the body is not valid base64
    """
    content_type: str | None = None
    body = payload

    if payload.startswith("data:"):
        header, sep, body = payload.partition(",")
        if not sep:
            raise PayloadDecodeError("Data URL has no payload separator")
        content_type = header[len("data:"):].split(";", 1)[0] or None

    try:
        return base64.b64decode(body, validate=True), content_type
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"Invalid base64 payload: {e}") from e


def split_fragments(payload: str, chunk_size: int) -> list[str]:
    """
    Split payload text into consecutive windows of chunk_size characters.

    The last fragment may be shorter. An empty payload yields no fragments.

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [payload[start:start + chunk_size] for start in range(0, len(payload), chunk_size)]


def fragment_count(payload_length: int, chunk_size: int) -> int:
    """Number of fragments split_fragments produces for a payload length."""
    return math.ceil(payload_length / chunk_size)
