# image_converter/encoder.py
import io
import logging
from typing import Tuple

from PIL import Image

from . import icon_packer
from .errors import EncodeError
from .formats import FORMAT_POLICIES, TargetFormat
from .validator import SourceImage

logger = logging.getLogger(__name__)

# Modes the PNG writer stores as-is
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


def _flatten_on_white(image: Image.Image) -> Image.Image:
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.split()[-1])  # paste using alpha channel as mask
    return background


def prepare_image(source: SourceImage, target: TargetFormat) -> Image.Image:
    """Return an image in a mode the target writer accepts, never ``source.image`` itself."""
    image = source.image
    if target is TargetFormat.JPEG:
        # JPEG has no alpha; composite onto white like the browser client does
        if source.has_alpha:
            return _flatten_on_white(image)
        return image.convert("RGB")
    if target is TargetFormat.PNG:
        if image.mode in PNG_MODES:
            return image.copy()
        return image.convert("RGBA" if source.has_alpha else "RGB")
    if target is TargetFormat.GIF:
        if image.mode in ("P", "L"):
            return image.copy()
        return image.convert("RGBA" if source.has_alpha else "RGB")
    # WEBP and AVIF
    return image.convert("RGBA" if source.has_alpha else "RGB")


def encode(source: SourceImage, target: TargetFormat) -> Tuple[bytes, str]:
    """
    Encode ``source`` as ``target`` and return ``(bytes, mime_type)``.

    The icon target is handed to the icon packer; every other target is
    re-encoded at its FormatPolicy settings with the original dimensions.
    """
    policy = FORMAT_POLICIES[target]
    if target is TargetFormat.ICO:
        return icon_packer.build_icon(source.image), policy.mime_type

    image = prepare_image(source, target)
    out_io = io.BytesIO()
    try:
        image.save(out_io, **policy.save_kwargs())
    except KeyError as exc:
        # Pillow raises KeyError when no writer is registered for the format
        raise EncodeError(f"{target.value} encoding is not available on this server") from exc
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Could not encode image as {target.value}: {exc}") from exc

    data = out_io.getvalue()
    if not data:
        raise EncodeError(f"Encoder produced no data for {target.value}")
    logger.debug(f"Encoded {target.value}: {len(data)} bytes")
    return data, policy.mime_type
