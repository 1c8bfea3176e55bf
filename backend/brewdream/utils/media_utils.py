"""
Media utilities for image payload handling.

Provides common functions for image bytes:
- Base64 / data URL decoding
- Data URL encoding
- Content type sniffing from magic bytes
- Remote download via httpx
"""

import base64
import binascii
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TYPE = "image/png"

# Magic byte prefixes for the image types snapshots arrive in
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def is_data_url(value: str) -> bool:
    """Check if a string is a data: URL."""
    return value.startswith("data:")


def decode_image_payload(payload: str) -> bytes:
    """Decode raw base64 or a base64 data URL to bytes.

    Args:
        payload: "iVBOR..." or "data:image/png;base64,iVBOR..."

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the payload is empty or not valid base64
    """
    text = payload.strip()
    if is_data_url(text):
        header, sep, text = text.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("Only base64 data URLs are supported")

    if not text:
        raise ValueError("Empty image payload")

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image payload: {e}") from e


def sniff_content_type(data: bytes, default: str = DEFAULT_IMAGE_TYPE) -> str:
    """Guess an image content type from magic bytes.

    Args:
        data: Image bytes
        default: Returned when no signature matches

    Returns:
        MIME type string
    """
    for signature, content_type in _SIGNATURES:
        if data.startswith(signature):
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return default


def to_data_url(data: bytes, content_type: str | None = None) -> str:
    """Encode bytes as a base64 data URL.

    Args:
        data: Image bytes
        content_type: MIME type (sniffed when omitted)

    Returns:
        "data:<type>;base64,<payload>"
    """
    content_type = content_type or sniff_content_type(data)
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


async def fetch_bytes(url: str, http_client: httpx.AsyncClient | None = None) -> bytes:
    """Download a URL, or decode it directly if it is a data URL.

    Args:
        url: http(s) URL or data URL
        http_client: Optional shared client (a temporary one is used otherwise)

    Returns:
        Response body bytes

    Raises:
        httpx.HTTPError: If the request fails or returns non-2xx
        ValueError: If a data URL is malformed
    """
    if is_data_url(url):
        return decode_image_payload(url)

    if http_client is not None:
        response = await http_client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content

    async with httpx.AsyncClient(timeout=60.0) as client:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content
