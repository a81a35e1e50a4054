"""Vision-model inference via the OpenAI Responses API."""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from kyc.errors import InferenceError
from kyc.prompts import ExtractionRequest

logger = logging.getLogger(__name__)


class InferenceClient:
    """Sends one extraction request per call; never retries."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4.1-mini",
        *,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_output_tokens: int = 400,
        client: Any | None = None,
    ) -> None:
        if client is None and api_key:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens

    def available(self) -> bool:
        return self.client is not None

    async def complete(self, request: ExtractionRequest) -> str:
        """Return the raw text completion for an extraction request."""
        if not self.client:
            raise InferenceError("OPENAI_API_KEY is required for document extraction")

        content = [
            {"type": "input_text", "text": request.instruction_text},
            {"type": "input_image", "image_url": request.image_part.data_url()},
        ]
        try:
            resp = await self.client.responses.create(
                model=self.model,
                input=[{"role": "user", "content": content}],
                max_output_tokens=self.max_output_tokens,
            )
        except openai.AuthenticationError as exc:
            logger.error("Inference authentication failed: %s", exc)
            raise InferenceError("Inference service rejected the API key") from exc
        except openai.APIConnectionError as exc:
            logger.error("Inference service unreachable: %s", exc)
            raise InferenceError(f"Inference service unreachable: {exc}") from exc
        except openai.APIStatusError as exc:
            logger.error("Inference service returned %s: %s", exc.status_code, exc)
            raise InferenceError(f"Inference service returned {exc.status_code}") from exc
        except openai.OpenAIError as exc:
            logger.exception("Inference request failed")
            raise InferenceError(f"Inference request failed: {exc}") from exc

        raw = getattr(resp, "output_text", None) or ""
        if not raw.strip():
            raise InferenceError("Inference service returned an empty completion")
        return raw
