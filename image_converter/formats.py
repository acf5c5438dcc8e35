# image_converter/formats.py
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

from .errors import UnsupportedFormatError

# Pillow decoders accepted as input
INPUT_FORMATS = ("JPEG", "PNG", "GIF", "WEBP", "AVIF", "ICO", "BMP", "TIFF")

ICON_MIME = "image/x-icon"


class TargetFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    AVIF = "avif"
    ICO = "ico"

    @classmethod
    def parse(cls, token: Optional[str]) -> "TargetFormat":
        value = (token or "").strip().lower()
        if value == "jpg":
            value = "jpeg"
        try:
            return cls(value)
        except ValueError:
            accepted = ", ".join(f.value for f in cls)
            raise UnsupportedFormatError(
                f"Unsupported format: {token!r}. Use: {accepted}"
            ) from None


@dataclass(frozen=True)
class FormatPolicy:
    pillow_format: str
    mime_type: str
    quality: Optional[int] = None
    compress_level: Optional[int] = None
    lossless: bool = False

    def save_kwargs(self) -> dict:
        kwargs = {"format": self.pillow_format}
        if self.lossless:
            # quality is meaningless for lossless targets
            if self.compress_level is not None:
                kwargs["compress_level"] = self.compress_level
        elif self.quality is not None:
            kwargs["quality"] = self.quality
        if self.pillow_format == "JPEG":
            kwargs["optimize"] = True
        return kwargs


FORMAT_POLICIES = MappingProxyType({
    TargetFormat.JPEG: FormatPolicy("JPEG", "image/jpeg", quality=90),
    TargetFormat.PNG: FormatPolicy("PNG", "image/png", compress_level=9, lossless=True),
    TargetFormat.WEBP: FormatPolicy("WEBP", "image/webp", quality=85),
    TargetFormat.GIF: FormatPolicy("GIF", "image/gif"),
    TargetFormat.AVIF: FormatPolicy("AVIF", "image/avif", quality=80),
    TargetFormat.ICO: FormatPolicy("ICO", ICON_MIME, compress_level=9, lossless=True),
})
