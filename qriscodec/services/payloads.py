"""Decode and dynamic conversion services used by the HTTP layer."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import settings
from ..crc import ChecksumResult, check_payload
from ..errors import ChecksumError, ParseError, QRISError
from ..fields import flatten, resolve
from ..monitoring import record_checksum, record_decode
from ..qris_encoder import EncodedPayload, encode_payload, to_dynamic
from ..renderer import render_png_base64
from ..tlv import Payload, decode
from .errors import err_bad_payload, err_checksum, err_parse, err_payload_too_large, from_codec_error

logger = logging.getLogger("qriscodec.service")


@dataclass(slots=True)
class InspectResult:
    payload: Payload
    fields: dict[str, str | None]
    checksum: ChecksumResult


@dataclass(slots=True)
class DynamicResult:
    source_checksum: ChecksumResult
    payload: Payload
    encoded: EncodedPayload
    qr_png_base64: str | None


class PayloadService:
    def __init__(self, *, max_depth: int | None = None, max_payload_length: int | None = None):
        self.max_depth = settings.max_depth if max_depth is None else max_depth
        self.max_payload_length = settings.max_payload_length if max_payload_length is None else max_payload_length

    def inspect(self, raw: str) -> InspectResult:
        """Decode ``raw`` and report its fields and checksum status."""

        payload = self._decode(raw)
        checksum = self._check(payload)
        return InspectResult(payload=payload, fields=flatten(payload), checksum=checksum)

    def make_dynamic(
        self,
        raw: str,
        *,
        amount: str,
        fee: str | None = None,
        fee_percent: bool = False,
        require_valid_checksum: bool = True,
        render: bool | None = None,
    ) -> DynamicResult:
        payload = self._decode(raw)
        checksum = self._check(payload)
        if require_valid_checksum and not checksum.valid:
            try:
                checksum.raise_for_status()
            except ChecksumError as exc:
                raise err_checksum(exc) from exc

        try:
            dynamic = to_dynamic(payload, amount, fee=fee, fee_percent=fee_percent)
        except QRISError as exc:
            raise from_codec_error(exc) from exc

        encoded = encode_payload(dynamic)
        logger.info(
            "dynamic payload built",
            extra={"amount": amount, "fee": fee, "crc": encoded.crc, "source_checksum": checksum.status.value},
        )

        qr_png_base64 = None
        should_render = settings.render_qr if render is None else render
        if should_render:
            merchant = resolve(dynamic, "merchantName")
            caption = merchant.raw if merchant else settings.app_name
            qr_png_base64 = render_png_base64(encoded.payload, caption=caption)

        return DynamicResult(source_checksum=checksum, payload=dynamic, encoded=encoded, qr_png_base64=qr_png_base64)

    def _decode(self, raw: str) -> Payload:
        if not raw:
            raise err_bad_payload("Payload string is empty")
        if len(raw) > self.max_payload_length:
            raise err_payload_too_large(self.max_payload_length)
        try:
            payload = decode(raw, max_depth=self.max_depth)
        except ParseError as exc:
            record_decode("error")
            logger.warning(
                "payload rejected",
                extra={"code": exc.code, "offset": exc.offset, "tag_path": "/".join(exc.path)},
            )
            raise err_parse(exc) from exc
        record_decode("ok")
        return payload

    def _check(self, payload: Payload) -> ChecksumResult:
        result = check_payload(payload)
        record_checksum(result.status.value)
        if not result.valid:
            logger.warning(
                "checksum finding",
                extra={"status": result.status.value, "expected": result.expected, "actual": result.actual},
            )
        return result
