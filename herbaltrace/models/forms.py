# herbaltrace/models/forms.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from herbaltrace.errors import MalformedJSON, ValidationError, from_pydantic

M = TypeVar("M", bound=BaseModel)


class FormModel(BaseModel):
    """Base for portal forms: strings are stripped, unknown keys ignored."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


def parse_form(model: Type[M], data: Optional[Dict[str, Any]]) -> M:
    if data is not None and not isinstance(data, dict):
        raise ValidationError("Form body must be an object")
    try:
        return model(**(data or {}))
    except PydanticValidationError as e:
        raise from_pydantic(e) from e


def require_fields(data: Optional[Dict[str, Any]], *fields: str) -> None:
    """Non-empty check done before any model parsing or store call."""
    if data is not None and not isinstance(data, dict):
        raise ValidationError("Form body must be an object")
    data = data or {}
    missing = [f for f in fields if data.get(f) is None or str(data.get(f)).strip() == ""]
    if missing:
        raise ValidationError("Please fill all required fields", missing=missing)


def parse_json_object(value: Any, field: str, empty: Any = None) -> Optional[Dict[str, Any]]:
    """
    Free-form JSON payloads arrive either as already-decoded objects or as
    text typed into a form. Blank text yields ``empty``.
    """
    if value is None:
        return empty
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        if not value.strip():
            return empty
        try:
            parsed = json.loads(value)
        except ValueError as e:
            raise MalformedJSON(f"{field} is not valid JSON", field=field) from e
        if not isinstance(parsed, dict):
            raise MalformedJSON(f"{field} must be a JSON object", field=field)
        return parsed
    raise MalformedJSON(f"{field} must be a JSON object", field=field)


def split_csv(value: Any) -> Optional[List[str]]:
    """'a, b ,c' -> ['a', 'b', 'c']; blank -> None. Lists pass through trimmed."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value]
    else:
        if not str(value).strip():
            return None
        items = [part.strip() for part in str(value).split(",")]
    items = [i for i in items if i]
    return items or None
