from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ocr_gateway.constants import KEY_METER_VALUE, KEY_SERIAL_NUMBER


class AnalysisMode(str, Enum):
    TEXT_LINES = "text_lines"
    STRUCTURED_FIELDS = "structured_fields"


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class TextLines:
    lines: tuple[str, ...] = ()

    def to_json(self) -> list[str]:
        return list(self.lines)


@dataclass(frozen=True)
class StructuredFields:
    meter_value: Optional[str] = None
    serial_number: Optional[str] = None

    def to_json(self) -> dict[str, Optional[str]]:
        return {
            KEY_METER_VALUE: self.meter_value,
            KEY_SERIAL_NUMBER: self.serial_number,
        }


CanonicalResult = Union[TextLines, StructuredFields]
