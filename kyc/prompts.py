"""Fixed extraction instructions per schema variant."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kyc.images import EncodedImagePart


class SchemaVariant(str, Enum):
    IDENTITY = "identity"
    NATIONALITY_AGE = "nationality_age"


IDENTITY_PROMPT = """
Analyze the image of this identity document (national ID card, passport, etc.).
Extract only the following fields and return them as a single JSON object.
Do not include any explanation or introductory text, only the JSON object.
1. nombre (string): the given name(s).
2. apellido (string): the surname(s).
3. nacionalidad (string): the ISO 3166-1 alpha-2 country code. For example: AR for Argentina, US for the United States.
4. fechaNacimiento (string): the birth date in YYYY-MM-DD format.
If a field cannot be found, set it to null.

Example response:
{
  "nombre": "Juan",
  "apellido": "Perez",
  "nacionalidad": "AR",
  "fechaNacimiento": "1990-05-15"
}
""".strip()

NATIONALITY_AGE_PROMPT = """
Analyze the image of this identity document.
Extract only the nationality and the age of the person.
Return the information exclusively as a single JSON object with the keys "nacionalidad" and "edad".
Do not include any explanation or introductory text, only the JSON object.
- nacionalidad (string): the nationality as printed on the document.
- edad (number): the age in whole years, computed from the birth date.
If a field cannot be found, set it to null.

Example response:
{"nacionalidad": "Mexicana", "edad": 30}
""".strip()

PROMPTS: dict[SchemaVariant, str] = {
    SchemaVariant.IDENTITY: IDENTITY_PROMPT,
    SchemaVariant.NATIONALITY_AGE: NATIONALITY_AGE_PROMPT,
}


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    variant: SchemaVariant
    instruction_text: str
    image_part: EncodedImagePart


def build_request(variant: SchemaVariant, image_part: EncodedImagePart) -> ExtractionRequest:
    """Pair the variant's constant instruction text with an encoded image."""
    return ExtractionRequest(
        variant=variant,
        instruction_text=PROMPTS[variant],
        image_part=image_part,
    )
