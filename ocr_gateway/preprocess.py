"""Pixel transform — grayscale / black-and-white normalisation before analysis."""
import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from ocr_gateway.constants import (
    BINARIZE_THRESHOLD,
    LUMA_BLUE,
    LUMA_GREEN,
    LUMA_RED,
    PREPROCESSED_FORMAT,
)
from ocr_gateway.errors import DecodeError, EncodeError


def _to_eight_bit(image: Image.Image) -> Image.Image:
    # 16-bit (and 32-bit integer) samples keep their top 8 bits
    samples = np.clip(np.asarray(image, dtype=np.int64), 0, 0xFFFF) >> 8
    return Image.fromarray(samples.astype(np.uint8))


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot decode image: {exc}") from exc
    if image.mode.startswith("I"):
        image = _to_eight_bit(image)
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=PREPROCESSED_FORMAT)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Cannot encode image: {exc}") from exc
    return buffer.getvalue()


def to_intensity(pixels: np.ndarray, binarize: bool) -> np.ndarray:
    """Replace the RGB channels of an (h, w, 3|4) uint8 array with luma.

    gray = 0.30 r + 0.59 g + 0.11 b; binarized pixels are 255 when
    gray > 128 else 0. Alpha, when present, is copied through.
    """
    rgb = pixels[..., :3].astype(np.float64)
    gray = LUMA_RED * rgb[..., 0] + LUMA_GREEN * rgb[..., 1] + LUMA_BLUE * rgb[..., 2]
    match binarize:
        case True:
            level = np.where(gray > BINARIZE_THRESHOLD, 255, 0).astype(np.uint8)
        case False:
            level = np.clip(np.rint(gray), 0, 255).astype(np.uint8)
    out = pixels.copy()
    out[..., 0] = out[..., 1] = out[..., 2] = level
    return out


def preprocess_image(data: bytes, binarize: bool = True) -> bytes:
    """Decode → grayscale/binarize in one pass → lossless PNG bytes."""
    image = decode_image(data)
    pixels = np.asarray(image, dtype=np.uint8)
    result = Image.fromarray(to_intensity(pixels, binarize))
    return encode_png(result)
