# image_converter/errors.py
"""
Error kinds raised by the conversion pipeline.

Each error is terminal for its request. The web layer turns them into a
JSON payload (or a flashed message) using ``to_dict`` and ``status_code``.
"""


class ConversionError(Exception):
    status_code = 500
    default_suggestion = "Try a different image or another output format."

    def __init__(self, message: str, suggestion: str = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion or self.default_suggestion

    def to_dict(self) -> dict:
        payload = {"success": False, "error": self.message}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


class DecodeError(ConversionError):
    status_code = 400
    default_suggestion = "Upload a valid JPEG, PNG, GIF, WebP, AVIF, ICO, BMP or TIFF image."


class DimensionError(ConversionError):
    status_code = 400
    default_suggestion = "Resize the image to smaller dimensions and try again."


class SizeError(ConversionError):
    status_code = 413
    default_suggestion = "Compress the image or upload a smaller file."


class UnsupportedFormatError(ConversionError):
    status_code = 400
    default_suggestion = "Choose one of: jpeg, png, webp, gif, avif, ico."


class EncodeError(ConversionError):
    status_code = 500


class IconPackError(ConversionError):
    status_code = 500
    default_suggestion = "Use a square image with a transparent background for best icon results."


class ConversionTimeoutError(ConversionError):
    status_code = 504
    default_suggestion = "Try again with a smaller image."


class MissingUploadError(ConversionError):
    status_code = 400
    default_suggestion = "Select an image file to convert."
