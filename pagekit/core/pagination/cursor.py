"""Cursor encoding and decoding for pagination.

Cursors are opaque strings that encode the position in a result set as the
sort-key values of a record, in the order of the active sort specification
(identifier last). They never contain row offsets, so a cursor stays valid
across process restarts and survives inserts and deletes before it.

The cursor format is:
1. JSON object ``{"v": 1, "k": [[tag, value], ...], "s": signature}``
2. Base64 URL-safe encoded without padding for use in URLs

Each key value carries a type tag so it decodes back to the same Python
type: ``s`` str, ``i`` int, ``f`` float, ``b`` bool, ``t`` datetime (ISO 8601),
``d`` date, ``u`` UUID, ``x`` Decimal, ``n`` null.

Example cursor payload:
    {"v":1,"k":[["t","2025-01-15T10:30:00+00:00"],["s","abc-123"]],"s":"4f1c2a9b0e7d"}
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, Field

from pagekit.core.pagination.values import MISSING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pagekit.core.pagination.ordering import SortSpec

CURSOR_VERSION = 1
MAX_CURSOR_LENGTH = 4096


class CursorData(BaseModel):
    """Decoded cursor contents.

    Attributes:
        values: Sort-key values, in sort-specification order
        signature: Fingerprint of the ordering the cursor was minted under
    """

    values: tuple[Any, ...] = Field(description="Sort key values for seeking")
    signature: str | None = Field(
        default=None,
        description="Sort specification fingerprint",
    )

    model_config = {"frozen": True}


class DecodeErrorKind(StrEnum):
    MALFORMED = "malformed"


@dataclass(frozen=True)
class DecodeError:
    """Typed decode failure returned instead of raising.

    Attributes:
        kind: Failure category.
        reason: Diagnostic message, safe to log, not meant for clients.
    """

    kind: DecodeErrorKind
    reason: str


def _tag(value: Any) -> list[Any]:
    if value is None or value is MISSING:
        return ["n", None]
    if isinstance(value, bool):
        return ["b", value]
    if isinstance(value, int):
        return ["i", value]
    if isinstance(value, float):
        if not math.isfinite(value):
            return ["x", repr(value)]
        return ["f", value]
    if isinstance(value, Decimal):
        if value.is_nan():
            return ["x", "nan"]
        if value.is_infinite():
            return ["x", "-inf" if value < 0 else "inf"]
        return ["x", str(value)]
    if isinstance(value, datetime):
        return ["t", value.isoformat()]
    if isinstance(value, date):
        return ["d", value.isoformat()]
    if isinstance(value, UUID):
        return ["u", str(value)]
    if isinstance(value, str):
        return ["s", value]
    msg = f"Cannot encode cursor value of type {type(value).__name__}"
    raise TypeError(msg)


def _untag(item: Any) -> Any:
    if not isinstance(item, list) or len(item) != 2:
        msg = "key entry must be a [tag, value] pair"
        raise ValueError(msg)
    tag, raw = item
    if tag == "n" and raw is None:
        return None
    if tag == "b" and isinstance(raw, bool):
        return raw
    if tag == "i" and isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if tag == "f" and isinstance(raw, int | float) and not isinstance(raw, bool):
        return float(raw)
    if tag == "x" and isinstance(raw, str):
        if raw in ("inf", "-inf", "nan"):
            return float(raw)
        number = Decimal(raw)
        if not number.is_finite():
            msg = f"non-finite decimal {raw!r}"
            raise ValueError(msg)
        return number
    if tag == "t" and isinstance(raw, str):
        return datetime.fromisoformat(raw)
    if tag == "d" and isinstance(raw, str):
        return date.fromisoformat(raw)
    if tag == "u" and isinstance(raw, str):
        return UUID(raw)
    if tag == "s" and isinstance(raw, str):
        return raw
    msg = f"unknown or mistyped tag {tag!r}"
    raise ValueError(msg)


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        # Encoding
        token = CursorCodec.encode(("2025-01-15", "abc-123"), signature=spec.signature)

        # Decoding
        result = CursorCodec.decode(token)
        if isinstance(result, DecodeError):
            ...  # map to a client error
        else:
            print(result.values)  # ("2025-01-15", "abc-123")
    """

    @staticmethod
    def encode(values: Sequence[Any], *, signature: str | None = None) -> str:
        """Encode sort-key values to an opaque string.

        Args:
            values: Key tuple in sort-specification order
            signature: Optional ordering fingerprint bound into the cursor

        Returns:
            URL-safe base64 encoded string without padding

        Raises:
            TypeError: If a value has no cursor representation
        """
        payload: dict[str, Any] = {"v": CURSOR_VERSION, "k": [_tag(v) for v in values]}
        if signature:
            payload["s"] = signature
        json_str = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.urlsafe_b64encode(json_str.encode()).decode().rstrip("=")

    @staticmethod
    def decode(cursor: str) -> CursorData | DecodeError:
        """Decode a cursor string.

        Never raises on hostile, truncated or foreign input; the failure is
        returned for the caller to map to a client-facing error.

        Args:
            cursor: URL-safe base64 encoded cursor string

        Returns:
            CursorData with sort key values, or a DecodeError
        """
        if not isinstance(cursor, str) or not cursor:
            return DecodeError(DecodeErrorKind.MALFORMED, "cursor is empty")
        if len(cursor) > MAX_CURSOR_LENGTH:
            return DecodeError(DecodeErrorKind.MALFORMED, "cursor is too long")
        try:
            padded = cursor + "=" * (-len(cursor) % 4)
            raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
            payload = json.loads(raw.decode("utf-8"))
        except (ValueError, UnicodeError, binascii.Error, RecursionError) as e:
            return DecodeError(DecodeErrorKind.MALFORMED, f"invalid encoding: {e}")

        if not isinstance(payload, dict):
            return DecodeError(DecodeErrorKind.MALFORMED, "payload is not an object")
        if payload.get("v") != CURSOR_VERSION:
            return DecodeError(DecodeErrorKind.MALFORMED, "unsupported cursor version")
        keys = payload.get("k")
        signature = payload.get("s")
        if not isinstance(keys, list) or (signature is not None and not isinstance(signature, str)):
            return DecodeError(DecodeErrorKind.MALFORMED, "payload has the wrong structure")
        try:
            values = tuple(_untag(item) for item in keys)
        except (ValueError, ArithmeticError) as e:
            return DecodeError(DecodeErrorKind.MALFORMED, f"invalid key value: {e}")
        return CursorData(values=values, signature=signature)

    @staticmethod
    def create_cursor(record: Any, sort: SortSpec) -> str:
        """Create the cursor pointing at ``record`` under ``sort``.

        Example:
            cursor = CursorCodec.create_cursor(user, SortSpec.parse("-created_at"))
        """
        from pagekit.core.pagination.ordering import sort_key

        return CursorCodec.encode(sort_key(record, sort), signature=sort.signature)


__all__ = ["CursorCodec", "CursorData", "DecodeError", "DecodeErrorKind"]
