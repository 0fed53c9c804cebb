"""Entry point — wires Config → AnalysisGateway → FastAPI app → uvicorn."""
import logging

import uvicorn
from rich.logging import RichHandler

from ocr_gateway.api import create_app
from ocr_gateway.config import Config
from ocr_gateway.constants import MSG_GATEWAY_STARTING


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def main() -> None:
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_GATEWAY_STARTING, config.host, config.port)

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
