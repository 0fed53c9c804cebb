"""AnalysisGateway — validate → preprocess → dispatch, transport-agnostic."""
import asyncio
import logging
import time

from ocr_gateway.config import Config
from ocr_gateway.constants import (
    IMAGE_MIME_PREFIX,
    MSG_DISPATCHING,
    MSG_ERR_INVALID_TYPE,
    MSG_ERR_TOO_LARGE,
    MSG_MOCK_REQUEST,
    MSG_PREPROCESSING,
    MSG_PROVIDER_FAILED,
    MSG_REQUEST_DONE,
    MSG_REQUEST_FAILED,
    MSG_VALIDATION_REJECTED,
    PREPROCESSED_MIME,
)
from ocr_gateway.errors import (
    GatewayError,
    ProviderError,
    UnexpectedResponseShapeError,
    ValidationError,
)
from ocr_gateway.models import AnalysisMode, CanonicalResult, ImagePayload
from ocr_gateway.preprocess import preprocess_image
from ocr_gateway.selector import ProviderSelector

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024


# ── pure helpers (module-level so tests can import them directly) ──────────────


def validate_upload(data: bytes, mime_type: str | None, max_bytes: int) -> ImagePayload:
    """Build an ImagePayload or raise ValidationError. No decoding happens here."""
    match mime_type:
        case str() as m if m.startswith(IMAGE_MIME_PREFIX):
            pass
        case _:
            raise ValidationError(f"Unsupported content type: {mime_type!r}", MSG_ERR_INVALID_TYPE)

    match len(data) <= max_bytes:
        case True:
            return ImagePayload(data=data, mime_type=mime_type)
        case False:
            raise ValidationError(
                f"Upload of {len(data)} bytes exceeds {max_bytes}",
                MSG_ERR_TOO_LARGE % f"{max_bytes / _MIB:g}",
            )


# ── gateway ───────────────────────────────────────────────────────────────────


class AnalysisGateway:
    """Runs one analysis per call. Holds only the immutable config and selector."""

    def __init__(self, config: Config, selector: ProviderSelector | None = None) -> None:
        self._config = config
        self._selector = selector or ProviderSelector(config)

    async def analyze(
        self,
        data: bytes,
        mime_type: str | None,
        mode: AnalysisMode,
        *,
        mock: bool = False,
        preprocess: bool = False,
        binarize: bool = True,
    ) -> CanonicalResult:
        started = time.monotonic()
        try:
            payload = self._validate(data, mime_type)
            match preprocess:
                case True:
                    payload = await self._preprocess(payload, binarize)
                case False:
                    pass
            result = await self._dispatch(payload, mode, mock)
        except GatewayError as exc:
            logger.info(MSG_REQUEST_FAILED, mode.value, time.monotonic() - started, exc)
            raise
        logger.info(MSG_REQUEST_DONE, mode.value, time.monotonic() - started)
        return result

    def _validate(self, data: bytes, mime_type: str | None) -> ImagePayload:
        try:
            return validate_upload(data, mime_type, self._config.max_upload_bytes)
        except ValidationError as exc:
            logger.warning(MSG_VALIDATION_REJECTED, exc)
            raise

    async def _preprocess(self, payload: ImagePayload, binarize: bool) -> ImagePayload:
        logger.info(MSG_PREPROCESSING, binarize)
        processed = await asyncio.to_thread(preprocess_image, payload.data, binarize)
        return ImagePayload(data=processed, mime_type=PREPROCESSED_MIME)

    async def _dispatch(self, payload: ImagePayload, mode: AnalysisMode, mock: bool) -> CanonicalResult:
        provider = self._selector.select(mode, mock=mock)
        match mock:
            case True:
                logger.warning(MSG_MOCK_REQUEST, mode.value)
            case False:
                logger.info(MSG_DISPATCHING, provider.name)
        try:
            return await provider.analyze(payload)
        except (ProviderError, UnexpectedResponseShapeError) as exc:
            logger.error(
                MSG_PROVIDER_FAILED,
                provider.name,
                getattr(exc, "status", None),
                exc,
            )
            raise
