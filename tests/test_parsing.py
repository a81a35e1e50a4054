from __future__ import annotations

import pytest

from kyc.errors import MalformedResponseError
from kyc.models import NOT_FOUND, NOT_FOUND_F, IdentityDetails, NationalityAge
from kyc.parsing import extract_json_object, parse_completion, strip_code_fences
from kyc.prompts import SchemaVariant

FULL = '{"nombre":"Juan","apellido":"Perez","nacionalidad":"AR","fechaNacimiento":"1990-05-15"}'


def test_full_response_is_kept_verbatim() -> None:
    result = parse_completion(FULL, SchemaVariant.IDENTITY)
    assert result == IdentityDetails(
        given_name="Juan",
        family_name="Perez",
        nationality_code="AR",
        birth_date="1990-05-15",
    )


@pytest.mark.parametrize(
    "text",
    [
        f"```json\n{FULL}\n```",
        f"```\n{FULL}\n```",
        f"  \n```JSON {FULL} ```\n",
    ],
)
def test_fenced_response_matches_unfenced(text: str) -> None:
    assert parse_completion(text, SchemaVariant.IDENTITY) == parse_completion(
        FULL, SchemaVariant.IDENTITY
    )


def test_missing_and_null_fields_render_sentinels() -> None:
    result = parse_completion('{"nombre": "Ana", "apellido": null, "nacionalidad": ""}', SchemaVariant.IDENTITY)
    assert result.given_name == "Ana"
    assert result.family_name is None
    assert result.nationality_code is None
    assert result.birth_date is None
    assert result.display_fields() == {
        "Nombre": "Ana",
        "Apellido": NOT_FOUND,
        "Nacionalidad": NOT_FOUND_F,
        "Fecha de Nacimiento": NOT_FOUND_F,
    }


def test_prose_around_object_uses_first_object() -> None:
    text = 'Here is the data:\n{"nombre": "Juan {Jr}", "apellido": "Perez"}\nThen {"nombre": "other"}'
    result = parse_completion(text, SchemaVariant.IDENTITY)
    assert result.given_name == "Juan {Jr}"
    assert result.family_name == "Perez"


@pytest.mark.parametrize("text", ["not json at all", "{broken", "", "```json\n```"])
def test_invalid_json_is_malformed(text: str) -> None:
    with pytest.raises(MalformedResponseError):
        parse_completion(text, SchemaVariant.IDENTITY)


@pytest.mark.parametrize("text", ['["Juan", "Perez"]', '"Juan"', "42", "null"])
def test_non_object_json_is_malformed(text: str) -> None:
    with pytest.raises(MalformedResponseError, match="expected an object"):
        extract_json_object(text)


def test_strip_code_fences_trims() -> None:
    assert strip_code_fences("```json\n{}\n```  ") == "{}"


@pytest.mark.parametrize(
    ("text", "nationality", "age"),
    [
        ('{"nacionalidad": "Mexicana", "edad": 30}', "Mexicana", 30),
        ('{"nacionalidad": null, "edad": null}', None, None),
        ('{"edad": "42"}', None, 42),
        ('{"nacionalidad": "Argentina", "edad": "unknown"}', "Argentina", None),
        ('{"nacionalidad": "Chilena", "edad": true}', "Chilena", None),
    ],
)
def test_nationality_age_variant(text: str, nationality: str | None, age: int | None) -> None:
    result = parse_completion(text, SchemaVariant.NATIONALITY_AGE)
    assert isinstance(result, NationalityAge)
    assert result.nationality == nationality
    assert result.age == age


def test_nationality_age_display() -> None:
    result = NationalityAge(nationality=None, age=30)
    assert result.display_fields() == {"Nacionalidad": NOT_FOUND_F, "Edad": "30"}
    assert NationalityAge().display_fields()["Edad"] == NOT_FOUND_F


@pytest.mark.parametrize(
    ("age", "shown"),
    [(1234567, "1234567"), (30.0, "30"), (30.5, "30.5"), (0, "0")],
)
def test_age_display_never_uses_exponent(age: float, shown: str) -> None:
    assert NationalityAge(nationality="Mexicana", age=age).display_fields()["Edad"] == shown
