from dataclasses import dataclass, field
from typing import Optional
import os
from dotenv import load_dotenv

from ocr_gateway.constants import (
    AZURE_VISION_API_VERSION,
    AZURE_VISION_MODEL_VERSION,
    CLAUDE_VISION_MODEL,
    DEFAULT_HOST,
    DEFAULT_MAX_UPLOAD_BYTES,
    DEFAULT_OCR_PROVIDER,
    DEFAULT_PORT,
    DEFAULT_VISION_PROVIDER,
    FAMILY_ANTHROPIC,
    FAMILY_AZURE_OPENAI,
    FAMILY_OPENAI,
    LEGACY_OPENAI_PROVIDERS,
    OPENAI_VISION_MODEL,
)
from ocr_gateway.errors import ConfigurationError


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one provider family.

    Fields may be None here; the selector checks the ones the family
    needs before any adapter is built.
    """

    family: str
    endpoint: Optional[str] = None
    api_key: Optional[str] = field(default=None, repr=False)
    model: Optional[str] = None
    api_version: Optional[str] = None
    # env var names per field, used to name what is missing
    sources: dict[str, str] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class Config:
    log_level: str
    host: str
    port: int
    max_upload_bytes: int
    ocr: ProviderConfig
    vision: ProviderConfig

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        log_level = os.getenv("LOG_LEVEL", "INFO")
        host = os.getenv("HOST", DEFAULT_HOST)
        port = os.getenv("PORT", str(DEFAULT_PORT))
        max_upload = os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
        ocr_family = os.getenv("OCR_PROVIDER") or DEFAULT_OCR_PROVIDER
        vision_family = _vision_family(
            os.getenv("VISION_PROVIDER") or None,
            os.getenv("OPENAI_PROVIDER") or None,
        )

        return cls._validate(
            log_level=log_level,
            host=host,
            port=port,
            max_upload_bytes=max_upload,
            ocr=_ocr_provider_from_env(ocr_family),
            vision=_vision_provider_from_env(vision_family),
        )

    @staticmethod
    def _validate(
        log_level: str,
        host: str,
        port: str,
        max_upload_bytes: str,
        ocr: ProviderConfig,
        vision: ProviderConfig,
    ) -> "Config":
        match _parse_int(port):
            case int() as p if 0 < p < 65536:
                port_value = p
            case _:
                raise ConfigurationError("PORT must be an integer between 1 and 65535")

        match _parse_int(max_upload_bytes):
            case int() as n if n > 0:
                max_upload_value = n
            case _:
                raise ConfigurationError("MAX_UPLOAD_BYTES must be a positive integer")

        return Config(
            log_level=log_level,
            host=host,
            port=port_value,
            max_upload_bytes=max_upload_value,
            ocr=ocr,
            vision=vision,
        )


def _parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _vision_family(explicit: Optional[str], legacy: Optional[str]) -> str:
    match (explicit, legacy):
        case (str() as family, _):
            return family
        case (None, str() as old):
            return LEGACY_OPENAI_PROVIDERS.get(old.lower(), old)
        case _:
            return DEFAULT_VISION_PROVIDER


def _from_env(family: str, **sources: Optional[str]) -> ProviderConfig:
    """Build a ProviderConfig from `field=ENV_VAR` pairs; `field_default` keys give fallbacks."""
    names = {k: v for k, v in sources.items() if not k.endswith("_default") and v}
    values = {
        name: os.getenv(var) or sources.get(f"{name}_default")
        for name, var in names.items()
    }
    return ProviderConfig(family=family, sources=names, **values)


def _ocr_provider_from_env(family: str) -> ProviderConfig:
    return _from_env(
        family,
        endpoint="AZURE_ENDPOINT",
        api_key="AZURE_KEY",
        model="AZURE_VISION_MODEL_VERSION",
        model_default=AZURE_VISION_MODEL_VERSION,
        api_version="AZURE_VISION_API_VERSION",
        api_version_default=AZURE_VISION_API_VERSION,
    )


def _vision_provider_from_env(family: str) -> ProviderConfig:
    match family:
        case str() as f if f == FAMILY_AZURE_OPENAI:
            return _from_env(
                family,
                endpoint="AZURE_OPENAI_ENDPOINT",
                api_key="AZURE_OPENAI_API_KEY",
                model="AZURE_OPENAI_DEPLOYMENT_NAME",
                api_version="AZURE_OPENAI_API_VERSION",
            )
        case str() as f if f == FAMILY_OPENAI:
            return _from_env(
                family,
                endpoint="OPENAI_BASE_URL",
                api_key="OPENAI_API_KEY",
                model="OPENAI_MODEL_NAME",
                model_default=OPENAI_VISION_MODEL,
            )
        case str() as f if f == FAMILY_ANTHROPIC:
            return _from_env(
                family,
                endpoint="ANTHROPIC_BASE_URL",
                api_key="ANTHROPIC_API_KEY",
                model="ANTHROPIC_MODEL_NAME",
                model_default=CLAUDE_VISION_MODEL,
            )
        case _:
            return ProviderConfig(family=family)
