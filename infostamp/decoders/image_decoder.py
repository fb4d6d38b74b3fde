from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from infostamp.constants import HEIF_EXTENSIONS, STANDARD_EXTENSIONS
from infostamp.errors import ImageDecodeError

_HEIF_REGISTERED = False


def _register_heif_opener() -> bool:
    global _HEIF_REGISTERED
    if _HEIF_REGISTERED:
        return True
    try:
        from pillow_heif import register_heif_opener
    except ImportError:
        return False
    register_heif_opener()
    _HEIF_REGISTERED = True
    return True


def _load(source) -> Image.Image:
    try:
        with Image.open(source) as image:
            image.load()
            return ImageOps.exif_transpose(image).copy()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"cannot decode image: {exc}") from exc


def decode_image(path: Path) -> Image.Image:
    ext = path.suffix.lower()
    if ext in HEIF_EXTENSIONS:
        if not _register_heif_opener():
            raise ImageDecodeError("pillow-heif is required to decode HEIF/HEIC/HIF")
        return _load(path)
    if ext in STANDARD_EXTENSIONS:
        return _load(path)
    raise ImageDecodeError(f"unsupported image format: {path.suffix}")


def decode_image_bytes(data: bytes) -> Image.Image:
    if not data:
        raise ImageDecodeError("image data is empty")
    return _load(io.BytesIO(bytes(data)))


def decode_base64_image(text: str) -> Image.Image:
    return decode_image_bytes(decode_base64(text))


def decode_base64(text: str) -> bytes:
    try:
        return base64.b64decode((text or "").strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("invalid base64 image data") from exc


def encode_image(image: Image.Image, image_format: str = "PNG", quality: int = 92) -> bytes:
    fmt = image_format.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    buffer = io.BytesIO()
    if fmt == "JPEG":
        if image.mode in {"RGBA", "LA", "P"}:
            # JPEG has no alpha; flatten onto white so transparent areas stay light.
            rgba = image.convert("RGBA")
            flat = Image.new("RGB", rgba.size, "#FFFFFF")
            flat.paste(rgba, mask=rgba.getchannel("A"))
            image = flat
        image.convert("RGB").save(buffer, format="JPEG", quality=max(1, min(100, quality)), optimize=True)
    elif fmt == "PNG":
        image.save(buffer, format="PNG", optimize=True)
    else:
        raise ValueError(f"output format must be jpeg/jpg or png, got: {image_format!r}")
    return buffer.getvalue()


def image_to_base64(image: Image.Image) -> str:
    return base64.b64encode(encode_image(image, "PNG")).decode("ascii")
