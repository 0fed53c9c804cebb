"""AnalysisProvider — abstract base for image analysis backends."""
from abc import ABC, abstractmethod

from ocr_gateway.models import AnalysisMode, CanonicalResult, ImagePayload


class AnalysisProvider(ABC):
    name: str
    mode: AnalysisMode

    @abstractmethod
    async def analyze(self, payload: ImagePayload) -> CanonicalResult:
        """Analyze one image and return its canonical result. Raises on failure."""
        ...
