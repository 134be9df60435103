"""Decoder: raw submission bytes -> document.

All failures surface as :class:`~ddhouse.errors.DecodeError`; nothing
partial is ever returned.
"""

from __future__ import annotations

import logging
import zlib
from typing import Any, Dict, Optional

import orjson
from pydantic import ValidationError

from ..errors import DecodeError
from .models import StatsdPayload

logger = logging.getLogger(__name__)


def inflate(raw: bytes, content_encoding: Optional[str] = None) -> bytes:
    """Unwrap a ``deflate`` (zlib) request body; other encodings pass through."""
    if (content_encoding or "").strip().lower() != "deflate":
        return raw
    try:
        return zlib.decompress(raw)
    except zlib.error as exc:
        raise DecodeError(f"invalid deflate body: {exc}") from exc


def decode_document(raw: bytes) -> Dict[str, Any]:
    """Decode a generic agent submission into a mutable document.

    Raises
    ------
    DecodeError
        On malformed UTF-8/JSON or a top-level value that is not an object.
    """
    try:
        document = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise DecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise DecodeError(
            f"expected a JSON object, got {type(document).__name__}"
        )
    return document


def decode_statsd(raw: bytes) -> StatsdPayload:
    """Decode a typed statsd envelope (``{"series": [...]}``).

    Raises
    ------
    DecodeError
        On malformed JSON or an envelope that fails validation.
    """
    document = decode_document(raw)
    try:
        return StatsdPayload.model_validate(document)
    except ValidationError as exc:
        raise DecodeError(
            f"invalid statsd envelope: {exc.error_count()} error(s)"
        ) from exc
