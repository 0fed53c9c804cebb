"""ProviderSelector — picks the mock responder or a configured live adapter."""
from dataclasses import dataclass
from typing import Callable

from ocr_gateway.config import Config, ProviderConfig
from ocr_gateway.constants import (
    FAMILY_ANTHROPIC,
    FAMILY_AZURE_OPENAI,
    FAMILY_AZURE_VISION,
    FAMILY_AZURE_VISION_LEGACY,
    FAMILY_OPENAI,
)
from ocr_gateway.errors import ConfigurationError
from ocr_gateway.models import AnalysisMode
from ocr_gateway.providers.azure_vision import AzureVisionLegacyOCRClient, AzureVisionOCRClient
from ocr_gateway.providers.claude import ClaudeVisionClient
from ocr_gateway.providers.client import AnalysisProvider
from ocr_gateway.providers.mock import MockProvider
from ocr_gateway.providers.openai import AzureOpenAIVisionClient, OpenAIVisionClient


@dataclass(frozen=True)
class ProviderFamily:
    mode: AnalysisMode
    required: tuple[str, ...]
    factory: Callable[[ProviderConfig], AnalysisProvider]


FAMILIES: dict[str, ProviderFamily] = {
    FAMILY_AZURE_VISION: ProviderFamily(
        AnalysisMode.TEXT_LINES,
        ("endpoint", "api_key", "model", "api_version"),
        AzureVisionOCRClient,
    ),
    FAMILY_AZURE_VISION_LEGACY: ProviderFamily(
        AnalysisMode.TEXT_LINES,
        ("endpoint", "api_key"),
        AzureVisionLegacyOCRClient,
    ),
    FAMILY_AZURE_OPENAI: ProviderFamily(
        AnalysisMode.STRUCTURED_FIELDS,
        ("endpoint", "api_key", "model", "api_version"),
        AzureOpenAIVisionClient,
    ),
    FAMILY_OPENAI: ProviderFamily(
        AnalysisMode.STRUCTURED_FIELDS,
        ("api_key", "model"),
        OpenAIVisionClient,
    ),
    FAMILY_ANTHROPIC: ProviderFamily(
        AnalysisMode.STRUCTURED_FIELDS,
        ("api_key", "model"),
        ClaudeVisionClient,
    ),
}


def missing_fields(provider: ProviderConfig, required: tuple[str, ...]) -> list[str]:
    """Names (env var where known) of required fields that are unset. Never values."""
    return [
        provider.sources.get(name, name)
        for name in required
        if not getattr(provider, name)
    ]


class ProviderSelector:

    def __init__(self, config: Config) -> None:
        self._config = config

    def provider_config(self, mode: AnalysisMode) -> ProviderConfig:
        match mode:
            case AnalysisMode.TEXT_LINES:
                return self._config.ocr
            case AnalysisMode.STRUCTURED_FIELDS:
                return self._config.vision

    def select(self, mode: AnalysisMode, mock: bool = False) -> AnalysisProvider:
        match mock:
            case True:
                return MockProvider(mode)
            case False:
                pass

        provider = self.provider_config(mode)
        family = FAMILIES.get(provider.family)
        match family:
            case None:
                raise ConfigurationError(
                    f"Unknown provider family {provider.family!r}; "
                    f"expected one of: {', '.join(sorted(FAMILIES))}"
                )
            case ProviderFamily(mode=m) if m != mode:
                raise ConfigurationError(
                    f"Provider family {provider.family!r} cannot serve {mode.value} requests"
                )
            case _:
                pass

        missing = missing_fields(provider, family.required)
        match missing:
            case []:
                pass
            case names:
                raise ConfigurationError(
                    f"Missing configuration for {provider.family}: {', '.join(names)}"
                )

        return family.factory(provider)
