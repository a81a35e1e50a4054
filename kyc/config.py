"""Configuration helpers for the KYC service."""

from __future__ import annotations

import os
from dataclasses import dataclass

from kyc.prompts import SchemaVariant


@dataclass(slots=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    openai_api_key: str | None
    model: str
    base_url: str | None
    schema_variant: SchemaVariant
    request_timeout_s: float
    max_image_bytes: int
    max_sessions: int


def _parse_variant(value: str | None) -> SchemaVariant:
    if not value:
        return SchemaVariant.IDENTITY
    try:
        return SchemaVariant(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(v.value for v in SchemaVariant)
        raise ValueError(f"KYC_SCHEMA_VARIANT must be one of: {choices}") from exc


def get_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("KYC_MODEL", "gpt-4.1-mini"),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        schema_variant=_parse_variant(os.getenv("KYC_SCHEMA_VARIANT")),
        request_timeout_s=float(os.getenv("KYC_REQUEST_TIMEOUT_S", "60")),
        max_image_bytes=int(os.getenv("KYC_MAX_IMAGE_BYTES", str(10 * 1024 * 1024))),
        max_sessions=int(os.getenv("KYC_MAX_SESSIONS", "1000")),
    )
