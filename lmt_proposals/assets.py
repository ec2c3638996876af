"""Image normalisation for day photos embedded in proposals."""
from __future__ import annotations

import asyncio
import io
import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, Optional, Set

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import OperationInProgressError, OperationTimeoutError, UnsupportedImageError
from .models import ImageRef

logger = logging.getLogger(__name__)

MAX_WIDTH = 1000
JPEG_QUALITY = 75
DEFAULT_TIMEOUT_SECONDS = 30.0
WHITE = (255, 255, 255)


def _decode(data: bytes) -> Image.Image:
    if not data:
        raise UnsupportedImageError("The uploaded file is empty.")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Image.DecompressionBombError as exc:
        raise UnsupportedImageError("The uploaded image is too large to process.") from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise UnsupportedImageError("The uploaded file is not a readable image.") from exc
    return image


def target_size(width: int, height: int, max_width: int = MAX_WIDTH) -> tuple[int, int]:
    """Scale ``(width, height)`` down to ``max_width`` keeping the aspect ratio."""

    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def _flatten_on_white(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def normalize_image(
    data: bytes,
    max_width: int = MAX_WIDTH,
    quality: int = JPEG_QUALITY,
) -> ImageRef:
    """Decode, downscale, flatten on white and re-encode an uploaded image.

    Returns an inline JPEG :class:`ImageRef`. Images no wider than
    ``max_width`` keep their dimensions.
    """

    image = _decode(data)
    image = ImageOps.exif_transpose(image)
    width, height = image.size
    new_size = target_size(width, height, max_width)
    flattened = _flatten_on_white(image)
    if new_size != (width, height):
        flattened = flattened.resize(new_size, Image.LANCZOS)

    buffer = io.BytesIO()
    flattened.save(buffer, format="JPEG", quality=quality, optimize=True)
    payload = buffer.getvalue()
    logger.info(
        "Normalised image %dx%d -> %dx%d (%d -> %d bytes)",
        width,
        height,
        new_size[0],
        new_size[1],
        len(data),
        len(payload),
    )
    return ImageRef(data=payload, mime_type="image/jpeg", width=new_size[0], height=new_size[1])


async def normalize_image_async(
    data: bytes,
    max_width: int = MAX_WIDTH,
    quality: int = JPEG_QUALITY,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> ImageRef:
    """Run :func:`normalize_image` off the event loop with a time budget."""

    try:
        return await asyncio.wait_for(
            asyncio.to_thread(normalize_image, data, max_width, quality),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise OperationTimeoutError(
            f"Image optimisation did not finish within {timeout:g} seconds."
        ) from exc


class OperationGuard:
    """Tracks long-running operations so one resource is never worked on twice."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Set[Hashable] = set()

    def is_busy(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._active

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._lock:
            if key in self._active:
                raise OperationInProgressError(key if isinstance(key, tuple) else (key,))
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)
