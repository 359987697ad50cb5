"""
Helpers for turning raw JSON payloads and pydantic failures into
caller-facing validation errors.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as PydanticValidationError

from agentation.core.errors import ValidationError

MISSING_ERROR_TYPES = {"missing", "string_too_short"}


def required_fields_message(fields: Iterable[str]) -> str:
    """'url is required', 'a and b are required', 'a, b, and c are required'."""
    names = list(fields)
    if len(names) == 1:
        return f"{names[0]} is required"
    if len(names) == 2:
        return f"{names[0]} and {names[1]} are required"
    return f"{', '.join(names[:-1])}, and {names[-1]} are required"


def missing_fields(exc: PydanticValidationError) -> List[str]:
    """Top-level fields that are absent or empty, in declaration order of the errors."""
    names: List[str] = []
    for err in exc.errors():
        if err["type"] in MISSING_ERROR_TYPES and len(err["loc"]) == 1:
            name = str(err["loc"][0])
            if name not in names:
                names.append(name)
    return names


def to_validation_error(exc: PydanticValidationError, context: Dict[str, Any] | None = None) -> ValidationError:
    """Map a pydantic failure onto our ValidationError.

    Missing/empty required fields get a field-listing message; any other
    shape problem is reported as an invalid payload.
    """
    missing = missing_fields(exc)
    if missing and len(missing) == exc.error_count():
        return ValidationError(
            "AGT-API-002",
            message=required_fields_message(missing),
            context={"fields": missing, **(context or {})},
        )
    return ValidationError(
        "AGT-API-001",
        message="invalid payload",
        detail=str(exc),
        context=context,
    )


def parse_json_object(body: bytes) -> Dict[str, Any]:
    """Decode a request body that must be a JSON object. Empty body → {}."""
    if not body or not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("AGT-API-001", message="invalid payload", detail=str(e))
    if not isinstance(payload, dict):
        raise ValidationError(
            "AGT-API-001",
            message="invalid payload",
            detail=f"expected a JSON object, got {type(payload).__name__}",
        )
    return payload
