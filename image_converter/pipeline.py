# image_converter/pipeline.py
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import Settings
from .encoder import encode
from .errors import ConversionError, ConversionTimeoutError
from .formats import TargetFormat
from .validator import validate

logger = logging.getLogger(__name__)


class ConversionStage(str, Enum):
    VALIDATING = "validating"
    ENCODING = "encoding"
    ICON_PACKING = "icon_packing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionRequest:
    source_bytes: bytes
    target_format: TargetFormat
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    declared_mime: Optional[str] = None
    # token as sent by the client, e.g. "jpg"
    requested_token: Optional[str] = None


@dataclass(frozen=True)
class ConversionResult:
    output_bytes: bytes
    mime_type: str
    output_format: TargetFormat
    elapsed_ms: int = 0
    requested_token: Optional[str] = None

    @property
    def format_token(self) -> str:
        return self.requested_token or self.output_format.value

    @property
    def filename(self) -> str:
        return f"converted.{self.format_token}"


def _check_declared_mime(request: ConversionRequest, decoded_format: Optional[str]):
    # advisory only; the decoder decides
    if not request.declared_mime or not decoded_format:
        return
    declared = request.declared_mime.lower().split("/")[-1]
    aliases = {"jpg": "jpeg", "x-icon": "ico", "vnd.microsoft.icon": "ico"}
    if aliases.get(declared, declared) != decoded_format.lower():
        logger.info(
            f"[{request.request_id}] declared {request.declared_mime} but decoded {decoded_format}"
        )


def run_conversion(request: ConversionRequest, settings: Settings) -> ConversionResult:
    """Validate then encode one request. Raises ConversionError subclasses."""
    started = time.monotonic()
    rid = request.request_id
    stage = ConversionStage.VALIDATING
    logger.debug(f"[{rid}] {stage.value}: {len(request.source_bytes)} bytes")
    try:
        source = validate(request.source_bytes, settings.max_dimension, settings.max_bytes)
        logger.info(
            f"[{rid}] image {source.width}x{source.height}, {source.declared_format}"
            f" -> {request.target_format.value}"
        )
        _check_declared_mime(request, source.declared_format)

        stage = ConversionStage.ENCODING
        if request.target_format is TargetFormat.ICO:
            stage = ConversionStage.ICON_PACKING
        logger.debug(f"[{rid}] {stage.value}")
        output, mime_type = encode(source, request.target_format)
    except ConversionError as exc:
        logger.warning(f"[{rid}] {ConversionStage.FAILED.value} while {stage.value}: {exc.message}")
        raise

    elapsed_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"[{rid}] {ConversionStage.SUCCEEDED.value}: {request.target_format.value},"
        f" {len(output)} bytes in {elapsed_ms}ms"
    )
    return ConversionResult(
        output_bytes=output,
        mime_type=mime_type,
        output_format=request.target_format,
        elapsed_ms=elapsed_ms,
        requested_token=request.requested_token,
    )


class ConversionService:
    """Runs conversions on a bounded worker pool with a per-request deadline."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_workers, thread_name_prefix="convert"
        )

    def convert(self, request: ConversionRequest) -> ConversionResult:
        future = self._executor.submit(run_conversion, request, self.settings)
        try:
            return future.result(timeout=self.settings.conversion_timeout)
        except FutureTimeout:
            # the worker cannot be interrupted; its result is discarded
            future.cancel()
            logger.error(
                f"[{request.request_id}] timed out after {self.settings.conversion_timeout}s"
            )
            raise ConversionTimeoutError(
                f"Conversion took longer than {self.settings.conversion_timeout:g} seconds"
            ) from None

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
