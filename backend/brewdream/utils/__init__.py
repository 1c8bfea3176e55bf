"""
Shared utilities.

Modules:
    media_utils: Image payload decoding, data URLs, downloads
"""

from brewdream.utils.media_utils import (
    decode_image_payload,
    fetch_bytes,
    is_data_url,
    sniff_content_type,
    to_data_url,
)

__all__ = [
    "decode_image_payload",
    "fetch_bytes",
    "is_data_url",
    "sniff_content_type",
    "to_data_url",
]
