# image_converter/validator.py
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .config import DEFAULT_MAX_BYTES, DEFAULT_MAX_DIMENSION
from .errors import DecodeError, DimensionError, SizeError
from .formats import INPUT_FORMATS

logger = logging.getLogger(__name__)

ALPHA_MODES = {"RGBA", "RGBa", "LA", "La", "PA"}


@dataclass(frozen=True)
class SourceImage:
    """A decoded upload. Callers must not mutate ``image``; convert() copies."""

    image: Image.Image
    width: int
    height: int
    has_alpha: bool
    declared_format: Optional[str]
    mode: str


def has_alpha_channel(image: Image.Image) -> bool:
    if image.mode in ALPHA_MODES:
        return True
    return image.mode == "P" and "transparency" in image.info


def validate(source_bytes: bytes, max_dimension: int = DEFAULT_MAX_DIMENSION,
             max_bytes: int = DEFAULT_MAX_BYTES) -> SourceImage:
    """
    Decode ``source_bytes`` and enforce the byte and dimension ceilings.

    The byte ceiling is checked before any decoding, the dimension ceiling
    right after the header is parsed and before pixel data is loaded.
    """
    if len(source_bytes) > max_bytes:
        raise SizeError(
            f"Image too large: {len(source_bytes)} bytes (maximum: {max_bytes} bytes)"
        )
    if not source_bytes:
        raise DecodeError("Invalid or corrupted image: empty upload")

    try:
        image = Image.open(io.BytesIO(source_bytes), formats=INPUT_FORMATS)
    except Image.DecompressionBombError as exc:
        raise DimensionError(f"Image too large: {exc}") from exc
    except UnidentifiedImageError as exc:
        raise DecodeError("Invalid or corrupted image: unrecognised format") from exc
    except (OSError, ValueError, SyntaxError) as exc:
        raise DecodeError(f"Invalid or corrupted image: {exc}") from exc

    width, height = image.size
    if width > max_dimension or height > max_dimension:
        image.close()
        raise DimensionError(
            f"Image too large: {width}x{height} pixels "
            f"(maximum: {max_dimension}x{max_dimension})"
        )

    try:
        image.load()
    except Image.DecompressionBombError as exc:
        image.close()
        raise DimensionError(f"Image too large: {exc}") from exc
    except (OSError, ValueError, SyntaxError) as exc:
        image.close()
        raise DecodeError(f"Invalid or corrupted image: {exc}") from exc

    source = SourceImage(
        image=image,
        width=width,
        height=height,
        has_alpha=has_alpha_channel(image),
        declared_format=image.format,
        mode=image.mode,
    )
    logger.debug(
        f"Decoded {source.declared_format} {width}x{height} mode={source.mode} alpha={source.has_alpha}"
    )
    return source
