"""Error taxonomy — every failure a request can end in."""
from typing import Optional

from ocr_gateway.constants import (
    MSG_ERR_CONFIG,
    MSG_ERR_DECODE,
    MSG_ERR_ENCODE,
    MSG_ERR_PROVIDER,
    MSG_ERR_RESPONSE_SHAPE,
)


class GatewayError(Exception):
    """Base class. `public_message` is safe to return to the caller."""

    status_code: int = 500

    def __init__(self, message: str, public_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.public_message = public_message or message


class ValidationError(GatewayError):
    status_code = 400


class ConfigurationError(GatewayError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message, MSG_ERR_CONFIG)


class DecodeError(GatewayError):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, MSG_ERR_DECODE)


class EncodeError(GatewayError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message, MSG_ERR_ENCODE)


class ProviderError(GatewayError):
    """Upstream API rejected the call or could not be reached."""

    status_code = 502

    def __init__(self, provider: str, status: Optional[int], message: str) -> None:
        super().__init__(message, MSG_ERR_PROVIDER % provider)
        self.provider = provider
        self.status = status
        self.message = message


class UnexpectedResponseShapeError(GatewayError):
    """Upstream answered 2xx with a body we cannot parse."""

    status_code = 502

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message, MSG_ERR_RESPONSE_SHAPE % provider)
        self.provider = provider


class PartialExtractionError(GatewayError):
    """Structured fields recovered only by the fallback parser.

    Never surfaces as a failed request: adapters catch it and return
    `result`, whose unmatched fields hold the parse-error sentinel.
    """

    def __init__(self, result, raw_text: str) -> None:
        super().__init__(f"Partial extraction from: {raw_text!r}")
        self.result = result
        self.raw_text = raw_text
