"""Image acquisition and base64 encoding for extraction requests.

Uploaded files and camera snapshots both end up as a :class:`RawImage`, so
nothing downstream needs to know where a photo came from.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from typing import Protocol

from kyc.errors import UserInputError

CAMERA_FILENAME = "webcam-capture.jpg"
CAMERA_MIME_TYPE = "image/jpeg"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class UploadLike(Protocol):
    filename: str | None
    content_type: str | None

    async def read(self) -> bytes: ...


@dataclass(frozen=True, slots=True)
class RawImage:
    data: bytes
    mime_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class EncodedImagePart:
    data: str
    mime_type: str

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def _resolve_mime_type(content_type: str | None, filename: str) -> str:
    if content_type:
        return content_type.split(";", 1)[0].strip().lower()
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def _check_size(data: bytes, max_bytes: int) -> None:
    if len(data) > max_bytes:
        raise UserInputError(f"Image is too large ({len(data)} bytes, limit {max_bytes})")


async def from_upload(upload: UploadLike, *, max_bytes: int = DEFAULT_MAX_BYTES) -> RawImage:
    """Read an uploaded file handle fully into a RawImage."""
    filename = upload.filename or "upload"
    mime_type = _resolve_mime_type(upload.content_type, filename)
    if not mime_type.startswith("image/"):
        raise UserInputError(f"Unsupported file type: {mime_type}")

    data = await upload.read()
    _check_size(data, max_bytes)
    return RawImage(data=data, mime_type=mime_type, filename=filename)


def from_data_url(data_url: str, *, max_bytes: int = DEFAULT_MAX_BYTES) -> RawImage:
    """Convert a camera screenshot data URL into a JPEG RawImage."""
    header, sep, payload = data_url.strip().partition(",")
    if not sep or not header.lower().startswith("data:"):
        raise UserInputError("Camera capture is not a data URL")
    if ";base64" not in header.lower():
        raise UserInputError("Camera capture must be base64 encoded")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UserInputError("Camera capture contains invalid base64 data") from exc

    _check_size(data, max_bytes)
    return RawImage(data=data, mime_type=CAMERA_MIME_TYPE, filename=CAMERA_FILENAME)


def encode_image(image: RawImage) -> EncodedImagePart:
    """Encode image bytes as base64 text paired with the original MIME type."""
    b64 = base64.b64encode(image.data).decode("ascii")
    return EncodedImagePart(data=b64, mime_type=image.mime_type)
