"""
Image intake helpers: validation, dimensions and data URLs
"""

import base64
import binascii
import io
from typing import Iterable, NamedTuple, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from risk_ai.core.exceptions import InvalidImageError

DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/png", "image/webp")


class ImageInfo(NamedTuple):
    width: int
    height: int
    mime_type: str


def inspect_image(
    data: bytes,
    content_type: Optional[str] = None,
    allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
    max_size: Optional[int] = None,
) -> ImageInfo:
    """Decode the image header and check it is one of the supported formats"""
    allowed = {t.lower() for t in allowed_types}
    if not data:
        raise InvalidImageError("Empty image upload")
    if max_size is not None and len(data) > max_size:
        raise InvalidImageError(
            f"Image too large (max {max_size // (1024 * 1024)} MB)"
        )
    if content_type and content_type.lower() not in allowed:
        raise InvalidImageError(
            f"Unsupported image type '{content_type}'. Use JPG, PNG or WEBP"
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            mime_type = Image.MIME.get(img.format or "", "")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"File is not a readable image: {e}")

    if mime_type.lower() not in allowed:
        raise InvalidImageError(
            f"Unsupported image format '{mime_type or 'unknown'}'. Use JPG, PNG or WEBP"
        )
    if width <= 0 or height <= 0:
        raise InvalidImageError("Image has no pixels")
    return ImageInfo(width=width, height=height, mime_type=mime_type)


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


def from_data_url(url: str) -> Tuple[bytes, str]:
    """Split a base64 data URL back into bytes and MIME type"""
    header, sep, encoded = url.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise InvalidImageError("Stored image is not a base64 data URL")
    mime_type = header[len("data:") :].split(";", 1)[0]
    try:
        return base64.b64decode(encoded, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Stored image data is corrupt: {e}")
