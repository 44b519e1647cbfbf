"""Shared service error definitions."""
from __future__ import annotations

from dataclasses import dataclass

from ..errors import ChecksumError, ParseError, QRISError


@dataclass(slots=True)
class ServiceError(Exception):
    code: str
    message: str
    status_code: int = 400
    path: tuple[str, ...] = ()

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


def err_bad_payload(message: str | None = None) -> ServiceError:
    return ServiceError(code="ERR_BAD_PAYLOAD", message=message or "Invalid request payload", status_code=400)


def err_payload_too_large(limit: int) -> ServiceError:
    return ServiceError(code="ERR_PAYLOAD_TOO_LARGE", message=f"Payload exceeds {limit} characters", status_code=400)


def err_parse(exc: ParseError) -> ServiceError:
    return ServiceError(code=exc.code, message=exc.message, status_code=422, path=exc.path)


def err_checksum(exc: ChecksumError) -> ServiceError:
    return ServiceError(code=exc.code, message=exc.message, status_code=422)


def from_codec_error(exc: QRISError) -> ServiceError:
    """Translate a codec exception into the service taxonomy."""

    if isinstance(exc, ParseError):
        return err_parse(exc)
    if isinstance(exc, ChecksumError):
        return err_checksum(exc)
    return ServiceError(code=exc.code, message=str(exc), status_code=400)
