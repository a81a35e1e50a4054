from __future__ import annotations

import pytest

from kyc.config import get_settings
from kyc.prompts import SchemaVariant


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OPENAI_API_KEY",
        "KYC_MODEL",
        "OPENAI_BASE_URL",
        "KYC_SCHEMA_VARIANT",
        "KYC_REQUEST_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()
    assert settings.openai_api_key is None
    assert settings.model == "gpt-4.1-mini"
    assert settings.schema_variant is SchemaVariant.IDENTITY
    assert settings.request_timeout_s == 60.0


def test_variant_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KYC_SCHEMA_VARIANT", " Nationality_Age ")
    assert get_settings().schema_variant is SchemaVariant.NATIONALITY_AGE


def test_unknown_variant(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KYC_SCHEMA_VARIANT", "passport")
    with pytest.raises(ValueError, match="KYC_SCHEMA_VARIANT"):
        get_settings()


def test_session_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KYC_MAX_SESSIONS", raising=False)
    assert get_settings().max_sessions == 1000
    monkeypatch.setenv("KYC_MAX_SESSIONS", "25")
    assert get_settings().max_sessions == 25
