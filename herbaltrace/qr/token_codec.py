# herbaltrace/qr/token_codec.py
"""
Product QR tokens.

A token is ``HT1.`` followed by the unpadded URL-safe base64 of the compact
JSON payload ``{"type", "productId", "batchIds"}``. Encoding is deterministic,
so the same payload always yields the same token.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from herbaltrace.errors import MalformedToken

TOKEN_PREFIX = "HT1."


class QRPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: str = Field(..., min_length=1)
    productId: str = Field(..., min_length=1)
    batchIds: List[str] = Field(default_factory=list)


def encode(payload) -> str:
    if not isinstance(payload, QRPayload):
        payload = QRPayload(**payload)
    raw = json.dumps(
        {"type": payload.type, "productId": payload.productId, "batchIds": list(payload.batchIds)},
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return TOKEN_PREFIX + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode(token: str) -> Dict[str, Any]:
    if not isinstance(token, str) or not token.startswith(TOKEN_PREFIX):
        raise MalformedToken("Token has no recognised prefix")

    body = token[len(TOKEN_PREFIX):]
    if not body:
        raise MalformedToken("Token body is empty")

    try:
        raw = base64.urlsafe_b64decode(body + "=" * (-len(body) % 4))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise MalformedToken("Token body is not valid encoded JSON") from e

    if not isinstance(data, dict):
        raise MalformedToken("Token payload is not an object")

    try:
        payload = QRPayload(**data)
    except (PydanticValidationError, TypeError) as e:
        raise MalformedToken("Token payload has the wrong shape") from e

    return payload.model_dump()
