# herbaltrace/errors.py

from __future__ import annotations

from typing import Any, Dict

from flask import current_app, jsonify
from pydantic import ValidationError as PydanticValidationError


class HerbalTraceError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str = "", **details: Any):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        out = {"ok": False, "err": self.message, "kind": self.kind}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(HerbalTraceError):
    """A required field is missing or unparseable. Raised before any store call."""

    status_code = 400
    kind = "validation_error"


class MalformedJSON(ValidationError):
    kind = "malformed_json"


class MalformedToken(HerbalTraceError):
    status_code = 400
    kind = "malformed_token"


class NotFound(HerbalTraceError):
    status_code = 404
    kind = "not_found"


class AuthError(HerbalTraceError):
    status_code = 401
    kind = "auth_error"


class Forbidden(HerbalTraceError):
    status_code = 403
    kind = "forbidden"


class StoreError(HerbalTraceError):
    """The row store rejected a read or write."""

    status_code = 502
    kind = "store_error"


class DuplicateRow(StoreError):
    status_code = 409
    kind = "duplicate_row"


class QRCollision(DuplicateRow):
    kind = "qr_collision"


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    errors = exc.errors()
    if not errors:
        return ValidationError("Invalid input")
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "__root__")
    msg = first.get("msg") or "Invalid value"
    return ValidationError(f"{field}: {msg}" if field else msg, field=field or None)


def register_error_handlers(app):
    @app.errorhandler(HerbalTraceError)
    def _handle_domain_error(e: HerbalTraceError):
        if e.status_code >= 500:
            current_app.logger.error("%s: %s", e.kind, e.message)
        else:
            current_app.logger.info("%s: %s", e.kind, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(PydanticValidationError)
    def _handle_pydantic_error(e: PydanticValidationError):
        err = from_pydantic(e)
        current_app.logger.info("%s: %s", err.kind, err.message)
        return jsonify(err.to_dict()), err.status_code
