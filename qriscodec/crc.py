"""CRC16-CCITT checksum for EMV payload strings."""
from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import ChecksumMismatch, MissingOrMalformedChecksumField
from .fields import CRC_TAG
from .tlv import Node, Payload, decode

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF


def crc16_ccitt(data: str) -> str:
    """Compute CRC-16/CCITT-FALSE (poly 0x1021, init 0xFFFF) for EMV payload strings."""

    checksum = CRC16_INIT
    for ch in data.encode("utf-8"):
        checksum ^= ch << 8
        for _ in range(8):
            if checksum & 0x8000:
                checksum = (checksum << 1) ^ CRC16_POLY
            else:
                checksum <<= 1
            checksum &= 0xFFFF
    return f"{checksum:04X}"


def compute_checksum(prefix: str) -> str:
    """Checksum for a payload prefix that already ends with ``"6304"``."""

    return crc16_ccitt(prefix)


class ChecksumStatus(str, enum.Enum):
    VALID = "VALID"
    MISMATCH = "MISMATCH"
    MISSING_OR_MALFORMED = "MISSING_OR_MALFORMED"


@dataclass(frozen=True, slots=True)
class ChecksumResult:
    status: ChecksumStatus
    expected: str | None = None
    actual: str | None = None

    @property
    def valid(self) -> bool:
        return self.status is ChecksumStatus.VALID

    def raise_for_status(self) -> None:
        if self.status is ChecksumStatus.MISSING_OR_MALFORMED:
            raise MissingOrMalformedChecksumField(
                "Tag 63 must be the last field with length 04",
                expected=self.expected,
                actual=self.actual,
            )
        if self.status is ChecksumStatus.MISMATCH:
            raise ChecksumMismatch(
                f"Stored checksum {self.actual} does not match computed {self.expected}",
                expected=self.expected,
                actual=self.actual,
            )


def check(raw: str, *, max_depth: int | None = None) -> ChecksumResult:
    """Check the trailing tag 63 of ``raw`` against the CRC of everything before it.

    Structural errors from decoding propagate unchanged.
    """

    return _check_nodes(raw, decode(raw, max_depth=max_depth).nodes)


def check_payload(payload: Payload) -> ChecksumResult:
    """Check a decoded payload against its source string, or its encoding if built in memory."""

    raw = payload.raw if payload.raw is not None else payload.encode()
    return _check_nodes(raw, payload.nodes)


def verify(raw: str) -> bool:
    return check(raw).valid


def _check_nodes(raw: str, nodes: tuple[Node, ...]) -> ChecksumResult:
    crc_nodes = [node for node in nodes if node.tag == CRC_TAG]
    if not crc_nodes:
        return ChecksumResult(status=ChecksumStatus.MISSING_OR_MALFORMED)

    last = nodes[-1]
    if last.tag != CRC_TAG or len(crc_nodes) > 1 or len(last.raw) != 4:
        actual = crc_nodes[-1].raw
        return ChecksumResult(status=ChecksumStatus.MISSING_OR_MALFORMED, actual=actual)

    # Tag 63 is last with length 04, so the raw string ends with "6304XXXX".
    prefix = raw[:-4]
    actual = raw[-4:]
    expected = compute_checksum(prefix)
    if expected == actual.upper():
        return ChecksumResult(status=ChecksumStatus.VALID, expected=expected, actual=actual)
    return ChecksumResult(status=ChecksumStatus.MISMATCH, expected=expected, actual=actual)
