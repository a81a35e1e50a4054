"""Pydantic models for extraction results and API contracts."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

NOT_FOUND = "No encontrado"
NOT_FOUND_F = "No encontrada"


class IdentityDetails(BaseModel):
    """Identity-document detail fields; ``None`` marks a field not found."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: Literal["identity"] = "identity"
    given_name: str | None = Field(default=None, alias="nombre")
    family_name: str | None = Field(default=None, alias="apellido")
    nationality_code: str | None = Field(default=None, alias="nacionalidad")
    birth_date: str | None = Field(default=None, alias="fechaNacimiento")

    def display_fields(self) -> dict[str, str]:
        return {
            "Nombre": self.given_name or NOT_FOUND,
            "Apellido": self.family_name or NOT_FOUND,
            "Nacionalidad": self.nationality_code or NOT_FOUND_F,
            "Fecha de Nacimiento": self.birth_date or NOT_FOUND_F,
        }


class NationalityAge(BaseModel):
    """Nationality and age summary; ``None`` marks a field not found."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: Literal["nationality_age"] = "nationality_age"
    nationality: str | None = Field(default=None, alias="nacionalidad")
    age: int | float | None = Field(default=None, alias="edad")

    def display_fields(self) -> dict[str, str]:
        if self.age is None:
            age = NOT_FOUND_F
        elif float(self.age).is_integer():
            age = str(int(self.age))
        else:
            age = str(self.age)
        return {"Nacionalidad": self.nationality or NOT_FOUND_F, "Edad": age}


ExtractionResult = Union[IdentityDetails, NationalityAge]


class ImageInfo(BaseModel):
    filename: str
    mime_type: str
    size: int


class SessionSnapshot(BaseModel):
    session_id: str
    status: Literal["idle", "dispatched", "succeeded", "failed"]
    source: Literal["upload", "camera"]
    image: ImageInfo | None = None
    result: IdentityDetails | NationalityAge | None = None
    display: dict[str, str] | None = None
    error: str | None = None


class SourceRequest(BaseModel):
    mode: Literal["upload", "camera"]


class CaptureRequest(BaseModel):
    data_url: str = Field(min_length=1)


class HealthResponse(BaseModel):
    status: str = "ok"
    inference_configured: bool = False
    schema_variant: str = "identity"
