"""AnalysisGateway tests"""
import asyncio
import io

import numpy as np
import pytest
from PIL import Image
from unittest.mock import AsyncMock, MagicMock, patch

from ocr_gateway.config import Config, ProviderConfig
from ocr_gateway.errors import (
    ConfigurationError,
    DecodeError,
    ProviderError,
    UnexpectedResponseShapeError,
    ValidationError,
)
from ocr_gateway.gateway import AnalysisGateway, validate_upload
from ocr_gateway.models import AnalysisMode, ImagePayload, StructuredFields, TextLines
from ocr_gateway.providers.azure_vision import AzureVisionOCRClient
from ocr_gateway.providers.openai import AzureOpenAIVisionClient
from ocr_gateway.selector import ProviderSelector

MIB = 1024 * 1024


def make_config(*, max_upload_bytes: int = 4 * MIB, vision: ProviderConfig | None = None) -> Config:
    return Config(
        log_level="INFO",
        host="127.0.0.1",
        port=8000,
        max_upload_bytes=max_upload_bytes,
        ocr=ProviderConfig(
            family="azure-vision",
            endpoint="https://vision.example.com/",
            api_key="vision-key",
            model="latest",
            api_version="2024-02-01",
        ),
        vision=vision or ProviderConfig(
            family="azure-openai",
            endpoint="https://aoai.example.com",
            api_key="aoai-key",
            model="deployment",
            api_version="2024-06-01",
        ),
    )


def make_png(color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 4), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def no_mock_delay(monkeypatch):
    monkeypatch.setattr("ocr_gateway.providers.mock.asyncio.sleep", AsyncMock())


# ── validation ────────────────────────────────────────────────────────────────


def test_validate_upload_accepts_image():
    payload = validate_upload(b"abc", "image/jpeg", 10)

    assert payload == ImagePayload(data=b"abc", mime_type="image/jpeg")


@pytest.mark.parametrize("mime", ["application/pdf", "text/plain", "", None])
def test_validate_upload_rejects_non_image(mime):
    with pytest.raises(ValidationError, match="content type"):
        validate_upload(b"abc", mime, 10)


def test_validate_upload_limit_is_inclusive():
    assert validate_upload(b"x" * 10, "image/png", 10).size == 10

    with pytest.raises(ValidationError):
        validate_upload(b"x" * 11, "image/png", 10)


def test_validate_upload_message_names_limit_in_mb():
    with pytest.raises(ValidationError) as info:
        validate_upload(b"x" * (5 * MIB), "image/png", 4 * MIB)

    assert info.value.public_message == "File size exceeds the limit of 4 MB."
    assert info.value.status_code == 400


async def test_oversized_upload_never_reaches_preprocess_or_provider():
    gateway = AnalysisGateway(make_config())

    with patch("ocr_gateway.gateway.preprocess_image") as preprocess, \
            patch.object(AzureVisionOCRClient, "analyze", new=AsyncMock()) as analyze:
        with pytest.raises(ValidationError):
            await gateway.analyze(
                b"x" * (5 * MIB), "image/png", AnalysisMode.TEXT_LINES, preprocess=True,
            )

    preprocess.assert_not_called()
    analyze.assert_not_called()


async def test_invalid_upload_is_rejected_even_in_mock_mode(no_mock_delay):
    gateway = AnalysisGateway(make_config())

    with pytest.raises(ValidationError):
        await gateway.analyze(b"%PDF", "application/pdf", AnalysisMode.TEXT_LINES, mock=True)


# ── mock mode ─────────────────────────────────────────────────────────────────


async def test_mock_text_lines_never_calls_provider(no_mock_delay):
    gateway = AnalysisGateway(make_config())

    with patch.object(AzureVisionOCRClient, "analyze", new=AsyncMock()) as analyze:
        first = await gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES, mock=True)
        second = await gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES, mock=True)

    analyze.assert_not_called()
    assert first == second == TextLines(
        lines=("Mock Server-Side OCR Result 1", "Mock Server-Side Result Line 2"),
    )


async def test_mock_structured_fields_never_calls_provider(no_mock_delay):
    gateway = AnalysisGateway(make_config())

    with patch.object(AzureOpenAIVisionClient, "analyze", new=AsyncMock()) as analyze:
        result = await gateway.analyze(
            make_png(), "image/png", AnalysisMode.STRUCTURED_FIELDS, mock=True,
        )

    analyze.assert_not_called()
    assert result == StructuredFields(meter_value="MOCK_12345.67", serial_number="MOCK_SN_987XYZ")


async def test_mock_delay_is_simulated(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr("ocr_gateway.providers.mock.asyncio.sleep", sleep)
    gateway = AnalysisGateway(make_config())

    await gateway.analyze(make_png(), "image/png", AnalysisMode.STRUCTURED_FIELDS, mock=True)

    (delay,), _ = sleep.call_args
    assert 0.5 <= delay <= 0.8


async def test_concurrent_mock_requests_do_not_block_each_other():
    gateway = AnalysisGateway(make_config())
    loop = asyncio.get_running_loop()
    started = loop.time()

    results = await asyncio.gather(*(
        gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES, mock=True)
        for _ in range(5)
    ))

    assert len(results) == 5
    assert loop.time() - started < 2.0


async def test_mock_mode_works_with_missing_configuration(no_mock_delay):
    gateway = AnalysisGateway(make_config(vision=ProviderConfig(family="azure-openai")))

    result = await gateway.analyze(make_png(), "image/png", AnalysisMode.STRUCTURED_FIELDS, mock=True)

    assert result.meter_value == "MOCK_12345.67"


# ── configuration ─────────────────────────────────────────────────────────────


async def test_missing_configuration_fails_with_zero_network_calls():
    gateway = AnalysisGateway(make_config(vision=ProviderConfig(family="azure-openai")))

    with patch("ocr_gateway.providers.openai.AsyncAzureOpenAI") as mock_cls:
        with pytest.raises(ConfigurationError):
            await gateway.analyze(make_png(), "image/png", AnalysisMode.STRUCTURED_FIELDS)

    mock_cls.assert_not_called()


# ── preprocessing ─────────────────────────────────────────────────────────────


async def test_preprocess_sends_png_to_provider():
    gateway = AnalysisGateway(make_config())
    seen = []

    async def fake_analyze(self, payload):
        seen.append(payload)
        return TextLines(lines=("ok",))

    with patch.object(AzureVisionOCRClient, "analyze", new=fake_analyze):
        result = await gateway.analyze(
            make_png(), "image/png", AnalysisMode.TEXT_LINES, preprocess=True, binarize=True,
        )

    assert result == TextLines(lines=("ok",))
    (payload,) = seen
    assert payload.mime_type == "image/png"
    pixels = np.asarray(Image.open(io.BytesIO(payload.data)))
    assert set(np.unique(pixels).tolist()) <= {0, 255}


async def test_preprocess_skipped_by_default():
    gateway = AnalysisGateway(make_config())
    original = make_png()

    with patch("ocr_gateway.gateway.preprocess_image") as preprocess, \
            patch.object(AzureVisionOCRClient, "analyze", new=AsyncMock(return_value=TextLines())) as analyze:
        await gateway.analyze(original, "image/jpeg", AnalysisMode.TEXT_LINES)

    preprocess.assert_not_called()
    (payload,), _ = analyze.call_args
    assert payload == ImagePayload(data=original, mime_type="image/jpeg")


async def test_decode_failure_stops_before_provider():
    gateway = AnalysisGateway(make_config())

    with patch.object(AzureVisionOCRClient, "analyze", new=AsyncMock()) as analyze:
        with pytest.raises(DecodeError):
            await gateway.analyze(b"not an image", "image/png", AnalysisMode.TEXT_LINES, preprocess=True)

    analyze.assert_not_called()


# ── dispatch ──────────────────────────────────────────────────────────────────


async def test_dispatch_uses_injected_selector():
    provider = MagicMock()
    provider.name = "stub"
    provider.analyze = AsyncMock(return_value=TextLines(lines=("a",)))
    selector = MagicMock(spec=ProviderSelector)
    selector.select.return_value = provider
    gateway = AnalysisGateway(make_config(), selector=selector)

    result = await gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES)

    selector.select.assert_called_once_with(AnalysisMode.TEXT_LINES, mock=False)
    assert result == TextLines(lines=("a",))


async def test_provider_error_is_raised_once_without_retry():
    gateway = AnalysisGateway(make_config())
    failing = AsyncMock(side_effect=ProviderError("Azure AI Vision", 500, "internal detail"))

    with patch.object(AzureVisionOCRClient, "analyze", new=failing):
        with pytest.raises(ProviderError) as info:
            await gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES)

    assert failing.await_count == 1
    assert "internal detail" not in info.value.public_message


async def test_shape_error_propagates():
    gateway = AnalysisGateway(make_config())
    failing = AsyncMock(side_effect=UnexpectedResponseShapeError("Azure AI Vision", "bad body"))

    with patch.object(AzureVisionOCRClient, "analyze", new=failing):
        with pytest.raises(UnexpectedResponseShapeError):
            await gateway.analyze(make_png(), "image/png", AnalysisMode.TEXT_LINES)
