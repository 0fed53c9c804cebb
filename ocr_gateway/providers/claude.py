"""ClaudeVisionClient — Anthropic Claude vision backend for meter readings."""
import base64
import logging

import anthropic
from anthropic import AsyncAnthropic

from ocr_gateway.config import ProviderConfig
from ocr_gateway.constants import (
    CLAUDE_MAX_TOKENS,
    METER_SYSTEM_PROMPT,
    METER_USER_PROMPT,
    MSG_DEGRADED_PARSE,
)
from ocr_gateway.errors import PartialExtractionError, ProviderError
from ocr_gateway.models import AnalysisMode, ImagePayload, StructuredFields
from ocr_gateway.providers.client import AnalysisProvider
from ocr_gateway.providers.parsing import parse_structured_fields

logger = logging.getLogger(__name__)


class ClaudeVisionClient(AnalysisProvider):
    name = "Anthropic"
    mode = AnalysisMode.STRUCTURED_FIELDS

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    async def analyze(self, payload: ImagePayload) -> StructuredFields:
        client = AsyncAnthropic(api_key=self._config.api_key, base_url=self._config.endpoint)
        image_data = base64.standard_b64encode(payload.data).decode()
        try:
            message = await client.messages.create(
                model=self._config.model,
                max_tokens=CLAUDE_MAX_TOKENS,
                system=METER_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": METER_USER_PROMPT},
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": payload.mime_type,
                                    "data": image_data,
                                },
                            },
                        ],
                    }
                ],
            )
        except anthropic.APIStatusError as exc:
            raise ProviderError(self.name, exc.status_code, exc.message) from exc
        except anthropic.APIError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc
        finally:
            await client.close()

        text = "".join(
            getattr(block, "text", "") for block in message.content or []
            if getattr(block, "type", None) == "text"
        ).strip()
        match text:
            case "":
                raise ProviderError(self.name, None, "Response missing content")
            case _:
                pass

        try:
            return parse_structured_fields(text)
        except PartialExtractionError as partial:
            logger.warning(MSG_DEGRADED_PARSE, partial.raw_text)
            return partial.result
