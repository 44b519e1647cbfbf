"""FastAPI application exposing the QRIS codec."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import settings
from .fields import flatten, lookup
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware
from .monitoring import metrics_payload, record_service_error
from .schemas import (
    ChecksumModel,
    DecodeRequest,
    DecodeResponse,
    DynamicRequest,
    DynamicResponse,
    ErrorResponse,
    NodeModel,
)
from .services.errors import ServiceError
from .services.payloads import PayloadService

VERSION = "0.1.0"

app = FastAPI(title="qriscodec", version=VERSION)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-API-Key", "X-Request-ID"],
)

logger = logging.getLogger("qriscodec.api")


def _warn_insecure_defaults() -> None:
    if settings.api_key == "dev-secret-key":
        logger.warning(
            "api key uses the default value",
            extra={"config_key": "api_key"},
        )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()


async def require_api_key(x_api_key: str = Header(...)) -> None:
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def get_payload_service() -> PayloadService:
    return PayloadService()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.warning(
        "service error",
        extra={"code": exc.code, "path": route_path, "method": request.method},
    )
    record_service_error(exc.code, route_path)
    body = ErrorResponse(code=exc.code, message=exc.message, path=list(exc.path))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.exception(
        "unhandled exception",
        extra={"path": route_path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"code": "ERR_INTERNAL", "message": "Internal server error", "path": []})


@app.get("/", tags=["system"])
async def index() -> dict[str, Any]:
    return {
        "name": settings.app_name,
        "version": VERSION,
        "endpoints": {
            "decode": "POST /v1/decode",
            "dynamic": "POST /v1/dynamic",
            "health": "GET /health",
            "metrics": "GET /metrics",
        },
    }


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.post("/v1/decode", response_model=DecodeResponse, tags=["qris"], dependencies=[Depends(require_api_key)])
def decode_payload(payload: DecodeRequest, service: PayloadService = Depends(get_payload_service)) -> DecodeResponse:
    result = service.inspect(payload.payload)
    nodes = []
    for node in result.payload:
        entry = lookup(node.tag)
        nodes.append(NodeModel.from_node(node, name=entry.name if entry else None))

    return DecodeResponse(
        payload=payload.payload,
        fields=result.fields,
        nodes=nodes,
        checksum=ChecksumModel.from_result(result.checksum),
    )


@app.post("/v1/dynamic", response_model=DynamicResponse, tags=["qris"], dependencies=[Depends(require_api_key)])
def make_dynamic(payload: DynamicRequest, service: PayloadService = Depends(get_payload_service)) -> DynamicResponse:
    result = service.make_dynamic(
        payload.payload,
        amount=payload.amount,
        fee=payload.fee,
        fee_percent=payload.fee_percent,
        require_valid_checksum=payload.require_valid_checksum,
        render=payload.render,
    )

    return DynamicResponse(
        payload=result.encoded.payload,
        crc=result.encoded.crc,
        source_checksum=ChecksumModel.from_result(result.source_checksum),
        fields=flatten(result.payload),
        qr_png_base64=result.qr_png_base64,
    )
