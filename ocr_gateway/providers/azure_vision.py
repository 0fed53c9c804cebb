"""AzureVisionOCRClient — Azure AI Vision read/OCR backend."""
from typing import Any, Optional

import httpx

from ocr_gateway.config import ProviderConfig
from ocr_gateway.constants import (
    AZURE_KEY_HEADER,
    AZURE_VISION_ANALYZE_PATH,
    AZURE_VISION_FEATURES,
    AZURE_VISION_LANGUAGE,
    AZURE_VISION_LEGACY_OCR_PATH,
    AZURE_VISION_TIMEOUT,
)
from ocr_gateway.errors import ProviderError, UnexpectedResponseShapeError
from ocr_gateway.models import AnalysisMode, ImagePayload, TextLines
from ocr_gateway.providers.client import AnalysisProvider


# ── response flattening (module-level so tests can import them directly) ──────


def _line_text(line: dict[str, Any]) -> str:
    return " ".join(word["text"] for word in line.get("words") or []).strip()


def _flatten(groups: list[dict[str, Any]]) -> tuple[str, ...]:
    return tuple(
        _line_text(line)
        for group in groups
        for line in group.get("lines") or []
    )


def extract_read_lines(data: Any) -> tuple[str, ...]:
    """Image Analysis 4.0: readResult → blocks → lines → words."""
    try:
        blocks = (data.get("readResult") or {}).get("blocks") or []
        return _flatten(blocks)
    except (AttributeError, KeyError, TypeError) as exc:
        raise UnexpectedResponseShapeError("Azure AI Vision", f"Bad read result: {exc}") from exc


def extract_ocr_regions(data: Any) -> tuple[str, ...]:
    """Computer Vision v3.2: regions → lines → words."""
    try:
        return _flatten(data.get("regions") or [])
    except (AttributeError, KeyError, TypeError) as exc:
        raise UnexpectedResponseShapeError("Azure AI Vision", f"Bad OCR regions: {exc}") from exc


# ── clients ───────────────────────────────────────────────────────────────────


class AzureVisionOCRClient(AnalysisProvider):
    name = "Azure AI Vision"
    mode = AnalysisMode.TEXT_LINES

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = AZURE_VISION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._timeout = timeout
        self._transport = transport

    def _url(self) -> str:
        return f"{self._config.endpoint.rstrip('/')}/{AZURE_VISION_ANALYZE_PATH}"

    def _params(self) -> dict[str, str]:
        return {
            "api-version": self._config.api_version,
            "model-version": self._config.model,
            "features": AZURE_VISION_FEATURES,
            "language": AZURE_VISION_LANGUAGE,
        }

    def _extract(self, data: Any) -> tuple[str, ...]:
        return extract_read_lines(data)

    async def analyze(self, payload: ImagePayload) -> TextLines:
        headers = {
            "Content-Type": payload.mime_type or "application/octet-stream",
            AZURE_KEY_HEADER: self._config.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._url(),
                    params=self._params(),
                    headers=headers,
                    content=payload.data,
                )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, None, f"Request failed: {exc}") from exc

        match response.is_success:
            case True:
                pass
            case False:
                detail = _error_detail(response)
                raise ProviderError(self.name, response.status_code, detail)

        try:
            data = response.json()
        except ValueError as exc:
            raise UnexpectedResponseShapeError(self.name, f"Body is not JSON: {exc}") from exc
        return TextLines(lines=self._extract(data))


class AzureVisionLegacyOCRClient(AzureVisionOCRClient):
    """Computer Vision v3.2 /ocr endpoint."""

    def _url(self) -> str:
        return f"{self._config.endpoint.rstrip('/')}/{AZURE_VISION_LEGACY_OCR_PATH}"

    def _params(self) -> dict[str, str]:
        return {"language": AZURE_VISION_LANGUAGE, "detectOrientation": "true"}

    def _extract(self, data: Any) -> tuple[str, ...]:
        return extract_ocr_regions(data)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    match body:
        case {"error": {"message": str() as message}}:
            return message
        case _:
            return response.text
