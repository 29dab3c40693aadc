"""Pillow helpers for decoding, downscaling and re-encoding captured images."""

from __future__ import annotations

import io

from PIL import Image


def load_image(image_data: bytes) -> Image.Image:
    """Decode image bytes; raises ``PIL.UnidentifiedImageError`` on garbage."""

    if not image_data:
        raise ValueError("Empty image payload")
    image = Image.open(io.BytesIO(image_data))
    image.load()
    return image


def downscale(image: Image.Image, max_dimension: int) -> Image.Image:
    """Return a copy no larger than ``max_dimension`` on either side."""

    scaled = image.copy()
    scaled.thumbnail((max_dimension, max_dimension))
    return scaled


def encode_jpeg(image: Image.Image, quality: int = 70) -> bytes:
    """Encode as JPEG, flattening transparency onto white."""

    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def make_thumbnail(image_data: bytes, size: int = 96, quality: int = 70) -> bytes:
    """Small JPEG preview for queued jobs; empty bytes when the image is unreadable."""

    try:
        image = load_image(image_data)
    except (OSError, ValueError):
        return b""
    return encode_jpeg(downscale(image, size), quality=quality)


__all__ = ["load_image", "downscale", "encode_jpeg", "make_thumbnail"]
