"""Reply parsing shared by the vision-chat adapters."""
import json
import re
from typing import Any, Optional

from ocr_gateway.constants import KEY_METER_VALUE, KEY_SERIAL_NUMBER, PARSE_ERROR_SENTINEL
from ocr_gateway.errors import PartialExtractionError
from ocr_gateway.models import StructuredFields

_FENCE_JSON = "```json"
_FENCE = "```"

_METER_PATTERN = re.compile(r"""meterValue["']?\s*:\s*["']?([^,"'}]+)""", re.IGNORECASE)
_SERIAL_PATTERN = re.compile(r"""serialNumber["']?\s*:\s*["']?([^,"'}]+)""", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    content = text.strip()
    match content:
        case c if c.startswith(_FENCE_JSON):
            return c[len(_FENCE_JSON):len(c) - len(_FENCE)].strip()
        case c if c.startswith(_FENCE):
            return c[len(_FENCE):len(c) - len(_FENCE)].strip()
        case c:
            return c


def _as_field(value: Any) -> Optional[str]:
    """Blank strings count as absent; other values keep their JSON spelling."""
    match value:
        case None:
            return None
        case str() as s if not s.strip():
            return None
        case str() as s:
            return s
        case bool() | dict() | list():
            return json.dumps(value)
        case other:
            return str(other)


def _fallback_field(pattern: re.Pattern, text: str) -> str:
    found = pattern.search(text)
    return found.group(1).strip() if found else PARSE_ERROR_SENTINEL


def parse_structured_fields(text: str) -> StructuredFields:
    """Parse a model reply into meter value / serial number.

    Raises PartialExtractionError carrying a best-effort result when the
    reply is not a JSON object.
    """
    content = strip_code_fence(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = None

    match data:
        case dict():
            return StructuredFields(
                meter_value=_as_field(data.get(KEY_METER_VALUE)),
                serial_number=_as_field(data.get(KEY_SERIAL_NUMBER)),
            )
        case list() | str() | int() | float():
            # valid JSON without the keys: both fields absent
            return StructuredFields()
        case _:
            partial = StructuredFields(
                meter_value=_fallback_field(_METER_PATTERN, content),
                serial_number=_fallback_field(_SERIAL_PATTERN, content),
            )
            raise PartialExtractionError(partial, content)
