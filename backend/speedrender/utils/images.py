from __future__ import annotations

import base64
import binascii
import re

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")
_WHITESPACE = re.compile(r"\s")


def clean_base64(value: object) -> str:
    """Strip whitespace and a leading ``data:image/...;base64,`` prefix.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""
    return _DATA_URL_PREFIX.sub("", _WHITESPACE.sub("", value))


def decode_base64_image(cleaned: str) -> bytes:
    """Decode an already-cleaned base64 image.

    Raises ValueError on empty input, invalid base64, or an empty result.
    """
    if not cleaned:
        raise ValueError("empty base64 payload")
    try:
        data = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("invalid base64 payload") from exc
    if not data:
        raise ValueError("base64 payload decoded to no data")
    return data
