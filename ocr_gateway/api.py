"""HTTP transport — FastAPI routes in front of the AnalysisGateway."""
import logging
from typing import Optional

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ocr_gateway.config import Config
from ocr_gateway.constants import (
    MSG_ERR_BAD_REQUEST,
    MSG_ERR_NO_IMAGE,
    MSG_ERR_UNEXPECTED,
    MSG_REQUEST_REJECTED,
    MSG_UNEXPECTED_ERROR,
)
from ocr_gateway.errors import GatewayError
from ocr_gateway.gateway import AnalysisGateway
from ocr_gateway.models import AnalysisMode

logger = logging.getLogger(__name__)


def _invalid_fields(exc: RequestValidationError) -> str:
    return ", ".join(
        ".".join(str(part) for part in error.get("loc", ()))
        for error in exc.errors()
    )


def create_app(config: Config, gateway: Optional[AnalysisGateway] = None) -> FastAPI:
    app = FastAPI(title="OCR Gateway")
    app.state.config = config
    app.state.gateway = gateway or AnalysisGateway(config)

    @app.exception_handler(GatewayError)
    async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = _invalid_fields(exc)
        logger.warning(MSG_REQUEST_REJECTED, fields)
        return JSONResponse({"error": MSG_ERR_BAD_REQUEST % fields}, status_code=400)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(MSG_UNEXPECTED_ERROR)
        return JSONResponse({"error": MSG_ERR_UNEXPECTED}, status_code=500)

    async def _analyze(
        mode: AnalysisMode,
        image: Optional[UploadFile],
        use_mock: bool,
        preprocess: bool,
        binarize: bool,
    ) -> JSONResponse:
        match image:
            case None:
                return JSONResponse({"error": MSG_ERR_NO_IMAGE}, status_code=400)
            case upload:
                # at most limit + 1 bytes; anything longer fails validation
                data = await upload.read(config.max_upload_bytes + 1)
        result = await app.state.gateway.analyze(
            data,
            upload.content_type,
            mode,
            mock=use_mock,
            preprocess=preprocess,
            binarize=binarize,
        )
        return JSONResponse({"results": result.to_json()})

    @app.post("/api/ocr")
    async def ocr(
        image: Optional[UploadFile] = File(None),
        use_mock: bool = Query(False, alias="useMock"),
        preprocess: bool = Query(False),
        binarize: bool = Query(True),
    ) -> JSONResponse:
        return await _analyze(AnalysisMode.TEXT_LINES, image, use_mock, preprocess, binarize)

    @app.post("/api/meter")
    async def meter(
        image: Optional[UploadFile] = File(None),
        use_mock: bool = Query(False, alias="useMock"),
        preprocess: bool = Query(False),
        binarize: bool = Query(True),
    ) -> JSONResponse:
        return await _analyze(AnalysisMode.STRUCTURED_FIELDS, image, use_mock, preprocess, binarize)

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "ocr_provider": config.ocr.family,
            "vision_provider": config.vision.family,
        }

    return app
