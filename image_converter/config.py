# image_converter/config.py
import os
from dataclasses import dataclass

DEFAULT_MAX_DIMENSION = 10000
DEFAULT_MAX_BYTES = 15 * 1024 * 1024
DEFAULT_TIMEOUT = 60.0


def _positive_int(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _positive_float(environ, name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide limits and server options, read once at startup."""

    max_dimension: int = DEFAULT_MAX_DIMENSION
    max_bytes: int = DEFAULT_MAX_BYTES
    max_workers: int = os.cpu_count() or 1
    conversion_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    secret_key: str = "replace-this-with-a-random-secret"
    port: int = 5000
    debug: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        if environ is None:
            environ = os.environ
        return cls(
            max_dimension=_positive_int(environ, "IMAGE_MAX_DIMENSION", DEFAULT_MAX_DIMENSION),
            max_bytes=_positive_int(environ, "IMAGE_MAX_BYTES", DEFAULT_MAX_BYTES),
            max_workers=_positive_int(environ, "CONVERTER_MAX_WORKERS", os.cpu_count() or 1),
            conversion_timeout=_positive_float(environ, "CONVERSION_TIMEOUT", DEFAULT_TIMEOUT),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
            secret_key=environ.get("FLASK_SECRET_KEY", cls.secret_key),
            port=_positive_int(environ, "PORT", 5000),
            debug=environ.get("FLASK_ENV") == "development",
        )
