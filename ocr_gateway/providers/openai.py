"""OpenAIVisionClient — OpenAI / Azure OpenAI chat-vision backend for meter readings."""
import base64
import logging

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from ocr_gateway.config import ProviderConfig
from ocr_gateway.constants import METER_SYSTEM_PROMPT, METER_USER_PROMPT, MSG_DEGRADED_PARSE
from ocr_gateway.errors import PartialExtractionError, ProviderError
from ocr_gateway.models import AnalysisMode, ImagePayload, StructuredFields
from ocr_gateway.providers.client import AnalysisProvider
from ocr_gateway.providers.parsing import parse_structured_fields

logger = logging.getLogger(__name__)


def image_data_url(payload: ImagePayload) -> str:
    image_data = base64.standard_b64encode(payload.data).decode()
    return f"data:{payload.mime_type};base64,{image_data}"


def build_messages(payload: ImagePayload) -> list[dict]:
    return [
        {"role": "system", "content": METER_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": METER_USER_PROMPT},
                {
                    "type": "image_url",
                    "image_url": {"url": image_data_url(payload)},
                },
            ],
        },
    ]


class OpenAIVisionClient(AnalysisProvider):
    name = "OpenAI"
    mode = AnalysisMode.STRUCTURED_FIELDS

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    def _client(self) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=self._config.api_key, base_url=self._config.endpoint)

    async def analyze(self, payload: ImagePayload) -> StructuredFields:
        client = self._client()
        try:
            response = await client.chat.completions.create(
                model=self._config.model,
                messages=build_messages(payload),
            )
        except openai.APIStatusError as exc:
            raise ProviderError(self.name, exc.status_code, exc.message) from exc
        except openai.APIError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc
        finally:
            await client.close()

        match response.choices:
            case [first, *_] if first.message and first.message.content:
                content = first.message.content.strip()
            case _:
                raise ProviderError(self.name, None, "Response missing content")

        try:
            return parse_structured_fields(content)
        except PartialExtractionError as partial:
            logger.warning(MSG_DEGRADED_PARSE, partial.raw_text)
            return partial.result


class AzureOpenAIVisionClient(OpenAIVisionClient):
    """Azure deployments: `model` is the deployment name."""

    name = "Azure OpenAI"

    def _client(self) -> AsyncAzureOpenAI:
        return AsyncAzureOpenAI(
            api_key=self._config.api_key,
            api_version=self._config.api_version,
            azure_endpoint=self._config.endpoint,
            azure_deployment=self._config.model,
        )
