"""Encoding detection for the XML/XHTML documents the template rules rewrite."""

import logging
from typing import Optional, Tuple

from bs4.dammit import EncodingDetector

logger = logging.getLogger(__name__)

SNIFF_BYTES = 1024
DEFAULT_ENCODING = "utf-8"


def declared_encoding(data: bytes) -> Optional[str]:
    """Return the encoding named in the XML declaration, if any."""
    return EncodingDetector.find_declared_encoding(data[:SNIFF_BYTES], is_html=False)


def _unsupported(declared: str) -> str:
    return f"Unsupported encoding {declared!r}, falling back to {DEFAULT_ENCODING}"


def sniff_encoding(data: bytes) -> Tuple[str, Optional[str]]:
    """Pick a codec for ``data``.

    Returns ``(encoding, warning)``; ``warning`` is set when the document
    declares an encoding Python cannot decode text with and UTF-8 was used
    instead. Binary codecs such as ``rot13`` or ``hex`` count as unsupported.
    """
    declared = declared_encoding(data)
    if not declared:
        return DEFAULT_ENCODING, None
    try:
        b"".decode(declared)
    except LookupError:
        return DEFAULT_ENCODING, _unsupported(declared)
    return declared, None


def decode_document(data: bytes) -> Tuple[str, Optional[str]]:
    encoding, warning = sniff_encoding(data)
    logger.debug("decoding %d bytes as %s", len(data), encoding)
    try:
        return data.decode(encoding, errors="replace"), warning
    except (LookupError, UnicodeError):
        # codecs like idna only accept errors="strict"
        return data.decode(DEFAULT_ENCODING, errors="replace"), _unsupported(encoding)
