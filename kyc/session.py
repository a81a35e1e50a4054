"""Verification sessions: one image, one attempt at a time."""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Literal, Union

from kyc.errors import (
    GENERIC_FAILURE_MESSAGE,
    InferenceError,
    MalformedResponseError,
    SessionBusyError,
    UserInputError,
)
from kyc.images import DEFAULT_MAX_BYTES, RawImage, encode_image, from_data_url
from kyc.inference import InferenceClient
from kyc.models import ExtractionResult, ImageInfo, SessionSnapshot
from kyc.parsing import parse_completion
from kyc.prompts import SchemaVariant, build_request

logger = logging.getLogger(__name__)

SourceMode = Literal["upload", "camera"]
DEFAULT_MAX_SESSIONS = 1000
NO_IMAGE_MESSAGE = "Por favor, selecciona una imagen primero."


@dataclass(frozen=True, slots=True)
class Idle:
    status: Literal["idle"] = "idle"


@dataclass(frozen=True, slots=True)
class Dispatched:
    status: Literal["dispatched"] = "dispatched"


@dataclass(frozen=True, slots=True)
class Succeeded:
    result: ExtractionResult
    status: Literal["succeeded"] = "succeeded"


@dataclass(frozen=True, slots=True)
class Failed:
    message: str
    status: Literal["failed"] = "failed"


AttemptState = Union[Idle, Dispatched, Succeeded, Failed]


class VerificationSession:
    """Holds the current image and the state of its verification attempt."""

    def __init__(
        self,
        inference: InferenceClient,
        variant: SchemaVariant = SchemaVariant.IDENTITY,
        *,
        session_id: str | None = None,
        max_image_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.inference = inference
        self.variant = variant
        self.max_image_bytes = max_image_bytes
        self.image: RawImage | None = None
        self.state: AttemptState = Idle()
        self.source: SourceMode = "upload"

    @property
    def in_progress(self) -> bool:
        return isinstance(self.state, Dispatched)

    @property
    def camera_open(self) -> bool:
        return self.source == "camera"

    def _ensure_not_busy(self) -> None:
        if self.in_progress:
            raise SessionBusyError("A verification attempt is already in progress")

    def set_image(self, image: RawImage) -> None:
        """Replace the current image and discard any prior result or error."""
        self._ensure_not_busy()
        self.image = image
        self.state = Idle()
        logger.info(
            "Session %s image set: %s (%s, %d bytes)",
            self.session_id,
            image.filename,
            image.mime_type,
            image.size,
        )

    def switch_source(self, mode: SourceMode) -> None:
        """Open the camera feed for ``camera`` mode, release it for ``upload``."""
        if mode == self.source:
            return
        self._ensure_not_busy()
        self.source = mode
        logger.info("Session %s camera %s", self.session_id, "opened" if mode == "camera" else "released")

    def capture_from_camera(self, data_url: str) -> RawImage:
        """Store a camera snapshot as the current image and release the camera."""
        if not self.camera_open:
            raise UserInputError("Camera is not active")
        self._ensure_not_busy()
        image = from_data_url(data_url, max_bytes=self.max_image_bytes)
        self.set_image(image)
        self.switch_source("upload")
        return image

    async def start_verification(self) -> AttemptState:
        """Run one extraction attempt for the current image."""
        self._ensure_not_busy()
        if self.image is None:
            raise UserInputError(NO_IMAGE_MESSAGE)
        part = encode_image(self.image)
        if not part.data:
            raise UserInputError(NO_IMAGE_MESSAGE)

        request = build_request(self.variant, part)
        self.state = Dispatched()
        try:
            raw = await self.inference.complete(request)
            result = parse_completion(raw, self.variant)
        except MalformedResponseError as exc:
            logger.warning("Session %s malformed model response: %s", self.session_id, exc)
            self.state = Failed(GENERIC_FAILURE_MESSAGE)
        except InferenceError as exc:
            logger.warning("Session %s inference failed: %s", self.session_id, exc)
            self.state = Failed(GENERIC_FAILURE_MESSAGE)
        except Exception:  # noqa: BLE001
            logger.exception("Session %s unexpected extraction failure", self.session_id)
            self.state = Failed(GENERIC_FAILURE_MESSAGE)
        except BaseException:
            logger.warning("Session %s extraction interrupted", self.session_id)
            self.state = Failed(GENERIC_FAILURE_MESSAGE)
            raise
        else:
            logger.info("Session %s extraction succeeded", self.session_id)
            self.state = Succeeded(result)
        return self.state

    def snapshot(self) -> SessionSnapshot:
        state = self.state
        image = None
        if self.image is not None:
            image = ImageInfo(
                filename=self.image.filename,
                mime_type=self.image.mime_type,
                size=self.image.size,
            )
        result = state.result if isinstance(state, Succeeded) else None
        return SessionSnapshot(
            session_id=self.session_id,
            status=state.status,
            source=self.source,
            image=image,
            result=result,
            display=result.display_fields() if result is not None else None,
            error=state.message if isinstance(state, Failed) else None,
        )


class SessionStore:
    """In-memory, per-process map of verification sessions.

    Holds at most ``max_sessions``; creating one more evicts the least
    recently used session that has no attempt in flight.
    """

    def __init__(
        self,
        inference: InferenceClient,
        variant: SchemaVariant = SchemaVariant.IDENTITY,
        *,
        max_image_bytes: int = DEFAULT_MAX_BYTES,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        self.inference = inference
        self.variant = variant
        self.max_image_bytes = max_image_bytes
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, VerificationSession] = OrderedDict()

    def create(self) -> VerificationSession:
        session = VerificationSession(
            self.inference,
            self.variant,
            max_image_bytes=self.max_image_bytes,
        )
        self._sessions[session.session_id] = session
        self._evict(keep=session.session_id)
        return session

    def _evict(self, keep: str) -> None:
        idle = [
            sid for sid, s in self._sessions.items() if sid != keep and not s.in_progress
        ]
        for sid in idle[: max(0, len(self._sessions) - self.max_sessions)]:
            del self._sessions[sid]
            logger.info("Evicted session %s", sid)

    def get(self, session_id: str) -> VerificationSession:
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown session: {session_id}") from None
        self._sessions.move_to_end(session_id)
        return session

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
