"""MockProvider — fixed results after a simulated delay, no network."""
import asyncio

from ocr_gateway.constants import (
    MOCK_METER_VALUE,
    MOCK_SERIAL_NUMBER,
    MOCK_STRUCTURED_FIELDS_DELAY,
    MOCK_TEXT_LINES,
    MOCK_TEXT_LINES_DELAY,
)
from ocr_gateway.models import (
    AnalysisMode,
    CanonicalResult,
    ImagePayload,
    StructuredFields,
    TextLines,
)
from ocr_gateway.providers.client import AnalysisProvider

MOCK_RESULTS: dict[AnalysisMode, CanonicalResult] = {
    AnalysisMode.TEXT_LINES: TextLines(lines=MOCK_TEXT_LINES),
    AnalysisMode.STRUCTURED_FIELDS: StructuredFields(
        meter_value=MOCK_METER_VALUE,
        serial_number=MOCK_SERIAL_NUMBER,
    ),
}

MOCK_DELAYS: dict[AnalysisMode, float] = {
    AnalysisMode.TEXT_LINES: MOCK_TEXT_LINES_DELAY,
    AnalysisMode.STRUCTURED_FIELDS: MOCK_STRUCTURED_FIELDS_DELAY,
}


class MockProvider(AnalysisProvider):
    name = "mock"

    def __init__(self, mode: AnalysisMode, delay: float | None = None) -> None:
        self.mode = mode
        self._delay = MOCK_DELAYS[mode] if delay is None else delay

    async def analyze(self, payload: ImagePayload) -> CanonicalResult:
        await asyncio.sleep(self._delay)
        return MOCK_RESULTS[self.mode]
