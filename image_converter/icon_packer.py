# image_converter/icon_packer.py
"""
Multi-resolution ICO generation.

The source is letterboxed into square transparent canvases at each size in
``ICON_SIZES``, each canvas is stored as a PNG, and the PNGs are packed into
one ICO container. Packing runs in two stages: the full size set first, then
a single ``FALLBACK_SIZE`` rendition when the full set yields nothing or
cannot be packed.
"""
import io
import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from .errors import IconPackError

logger = logging.getLogger(__name__)

ICON_SIZES = (256, 128, 64, 48, 32, 16)
FALLBACK_SIZE = 64
PNG_COMPRESS_LEVEL = 9

ICONDIR = struct.Struct("<HHH")
ICONDIRENTRY = struct.Struct("<BBBBHHII")


class IconStage(str, Enum):
    FULL_SET = "full_set"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class IconRendition:
    size: int
    data: bytes


def contain_size(width: int, height: int, size: int) -> Tuple[int, int]:
    """Largest (w, h) with the source aspect ratio that fits a size x size box."""
    scale = min(size / width, size / height)
    return (
        min(size, max(1, round(width * scale))),
        min(size, max(1, round(height * scale))),
    )


def render_rendition(image: Image.Image, size: int) -> IconRendition:
    rgba = image.convert("RGBA")
    fitted = rgba.resize(contain_size(rgba.width, rgba.height, size), Image.Resampling.LANCZOS)
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(fitted, ((size - fitted.width) // 2, (size - fitted.height) // 2))

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    data = buffer.getvalue()
    if not data:
        raise ValueError(f"empty PNG for {size}x{size}")
    return IconRendition(size=size, data=data)


def pack_icon(renditions: Sequence[IconRendition]) -> bytes:
    """Pack PNG renditions into an ICO byte stream, largest first."""
    if not renditions:
        raise ValueError("no renditions to pack")
    ordered = sorted(renditions, key=lambda r: r.size, reverse=True)
    sizes = [r.size for r in ordered]
    if len(set(sizes)) != len(sizes):
        raise ValueError(f"duplicate icon sizes: {sizes}")

    header = ICONDIR.pack(0, 1, len(ordered))
    offset = ICONDIR.size + ICONDIRENTRY.size * len(ordered)
    directory = []
    for rendition in ordered:
        if not 1 <= rendition.size <= 256:
            raise ValueError(f"icon size out of range: {rendition.size}")
        # 256 does not fit in a byte and is stored as 0
        dim = 0 if rendition.size == 256 else rendition.size
        directory.append(ICONDIRENTRY.pack(dim, dim, 0, 0, 1, 32, len(rendition.data), offset))
        offset += len(rendition.data)

    return header + b"".join(directory) + b"".join(r.data for r in ordered)


def render_all(image: Image.Image, sizes: Sequence[int]) -> List[IconRendition]:
    renditions = []
    for size in sizes:
        try:
            renditions.append(render_rendition(image, size))
        except (OSError, ValueError) as exc:
            logger.warning(f"Icon size {size} skipped: {exc}")
    return renditions


def pack_full_set(image: Image.Image, sizes: Sequence[int]) -> Optional[bytes]:
    """First stage. Returns None when nothing rendered or packing failed."""
    renditions = render_all(image, sizes)
    if not renditions:
        logger.warning("No icon size could be rendered")
        return None
    try:
        return pack_icon(renditions)
    except (OSError, ValueError, struct.error) as exc:
        logger.warning(f"Icon packing failed for {len(renditions)} sizes: {exc}")
        return None


def pack_fallback(image: Image.Image, size: int) -> bytes:
    """Second stage: a single rendition, or IconPackError."""
    logger.info(f"Icon falling back to a single {size}x{size} rendition")
    try:
        return pack_icon([render_rendition(image, size)])
    except (OSError, ValueError, struct.error) as exc:
        raise IconPackError(f"Could not generate the ICO file: {exc}") from exc


def build_icon_staged(image: Image.Image, sizes: Sequence[int] = ICON_SIZES,
                      fallback_size: int = FALLBACK_SIZE) -> Tuple[IconStage, bytes]:
    data = pack_full_set(image, sizes)
    if data is not None:
        return IconStage.FULL_SET, data
    return IconStage.FALLBACK, pack_fallback(image, fallback_size)


def build_icon(image: Image.Image, sizes: Sequence[int] = ICON_SIZES,
               fallback_size: int = FALLBACK_SIZE) -> bytes:
    stage, data = build_icon_staged(image, sizes, fallback_size)
    if logger.isEnabledFor(logging.DEBUG):
        with Image.open(io.BytesIO(data)) as icon:
            packed = sorted(icon.info["sizes"], reverse=True)
        logger.debug(f"Icon packed ({stage.value}): sizes={packed}, {len(data)} bytes")
    return data
