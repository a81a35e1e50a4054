from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from kyc.images import RawImage
from kyc.inference import InferenceClient

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-document-photo\xff\xd9"

FULL_RESPONSE = (
    '{"nombre":"Juan","apellido":"Perez","nacionalidad":"AR","fechaNacimiento":"1990-05-15"}'
)


class FakeResponses:
    """Stands in for ``AsyncOpenAI().responses``."""

    def __init__(self, output_text: str = FULL_RESPONSE, error: Exception | None = None) -> None:
        self.output_text = output_text
        self.error = error
        self.calls: list[dict] = []
        self.gate: asyncio.Event | None = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_text=self.output_text)


@pytest.fixture
def fake_responses() -> FakeResponses:
    return FakeResponses()


@pytest.fixture
def inference(fake_responses: FakeResponses) -> InferenceClient:
    return InferenceClient(None, "test-model", client=SimpleNamespace(responses=fake_responses))


@pytest.fixture
def raw_image() -> RawImage:
    return RawImage(data=JPEG_BYTES, mime_type="image/jpeg", filename="dni.jpg")
