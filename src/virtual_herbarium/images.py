"""
Image measurement and downscaling (Pillow).

Files are rewritten in place as JPEG.  Functions raise whatever Pillow or
the filesystem raises; the download loop records those errors per row.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003

from PIL import Image

# Herbarium sheets are routinely larger than Pillow's decompression-bomb limit.
Image.MAX_IMAGE_PIXELS = None

JPEG = "JPEG"


@dataclass(frozen=True)
class ImageInfo:
    """Pixel dimensions and on-disk size of an image file."""

    width: int
    height: int
    filesize: int

    @property
    def megapixels(self) -> float:
        return (self.width * self.height) / 1e6


def measure(path: Path) -> ImageInfo:
    """Decode ``path`` and return its dimensions and byte size."""
    with Image.open(path) as img:
        img.load()
        width, height = img.size
    return ImageInfo(width=width, height=height, filesize=path.stat().st_size)


def _to_jpeg_mode(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "L", "CMYK"):
        return img
    return img.convert("RGB")


def recompress(path: Path, quality: int) -> ImageInfo:
    """Re-encode ``path`` in place as JPEG at ``quality`` (1-100)."""
    with Image.open(path) as img:
        img.load()
        out = _to_jpeg_mode(img.copy())
    out.save(path, JPEG, quality=quality)
    return measure(path)


def scale_percent(current_megapixels: float, max_megapixels: float) -> int:
    """Linear scale (in percent) that brings an image down to ``max_megapixels``.

    The extra -1 keeps the result just under the cap after rounding.
    """
    return round(math.sqrt(max_megapixels / current_megapixels) * 100) - 1


def rescale(path: Path, percent: int) -> ImageInfo:
    """Resize ``path`` in place to ``percent`` of its width and height."""
    if percent <= 0:
        msg = f"Scale percentage must be positive, got {percent}"
        raise ValueError(msg)
    with Image.open(path) as img:
        img.load()
        width, height = img.size
        size = (max(1, round(width * percent / 100)), max(1, round(height * percent / 100)))
        out = _to_jpeg_mode(img.resize(size, Image.Resampling.LANCZOS))
    out.save(path, JPEG)
    return measure(path)
