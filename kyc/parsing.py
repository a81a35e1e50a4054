"""Parse free-text model completions into typed extraction results."""

from __future__ import annotations

import json
import math
import re
from typing import Any

from kyc.errors import MalformedResponseError
from kyc.models import ExtractionResult, IdentityDetails, NationalityAge
from kyc.prompts import SchemaVariant

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def _first_balanced_object(text: str) -> str | None:
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : idx + 1]
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the JSON object carried by a completion.

    The whole fence-stripped text is tried first. When the model wrapped the
    object in prose, the first balanced ``{...}`` fragment is used instead.
    """
    cleaned = strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        fragment = _first_balanced_object(cleaned)
        if fragment is None:
            raise MalformedResponseError("Model returned non-JSON payload")
        try:
            payload = json.loads(fragment)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"Model returned invalid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Model returned JSON {type(payload).__name__}, expected an object"
        )
    return payload


def _text_field(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value)
    return text if text.strip() else None


def _number_field(payload: dict[str, Any], key: str) -> int | float | None:
    value = payload.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"-?\d+", text):
            return int(text)
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def parse_completion(text: str, variant: SchemaVariant) -> ExtractionResult:
    """Parse a raw completion into the record for ``variant``.

    Missing or null fields become ``None``; only an unparseable payload
    raises :class:`MalformedResponseError`.
    """
    payload = extract_json_object(text)
    if variant is SchemaVariant.IDENTITY:
        return IdentityDetails(
            given_name=_text_field(payload, "nombre"),
            family_name=_text_field(payload, "apellido"),
            nationality_code=_text_field(payload, "nacionalidad"),
            birth_date=_text_field(payload, "fechaNacimiento"),
        )
    return NationalityAge(
        nationality=_text_field(payload, "nacionalidad"),
        age=_number_field(payload, "edad"),
    )
