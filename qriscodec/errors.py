"""Error taxonomy for the QRIS codec."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class QRISError(Exception):
    """Base class for every error raised by the codec."""

    code: ClassVar[str] = "ERR_QRIS"


@dataclass(slots=True)
class ParseError(QRISError):
    """Structural failure while decoding; aborts the decode call."""

    message: str
    offset: int = 0
    path: tuple[str, ...] = ()

    code: ClassVar[str] = "ERR_PARSE"

    def __str__(self) -> str:  # noqa: D401 override
        where = f" in tag {'/'.join(self.path)}" if self.path else ""
        return f"{self.code}: {self.message} at offset {self.offset}{where}"


class TruncatedTag(ParseError):
    code = "ERR_TRUNCATED_TAG"


class TruncatedValue(ParseError):
    code = "ERR_TRUNCATED_VALUE"


class InvalidLength(ParseError):
    code = "ERR_INVALID_LENGTH"


class ExcessiveNesting(ParseError):
    code = "ERR_EXCESSIVE_NESTING"


@dataclass(slots=True)
class ChecksumError(QRISError):
    """Checksum finding; only raised on request, never by the decoder."""

    message: str
    expected: str | None = None
    actual: str | None = None

    code: ClassVar[str] = "ERR_CHECKSUM"

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


class MissingOrMalformedChecksumField(ChecksumError):
    code = "ERR_CRC_FIELD"


class ChecksumMismatch(ChecksumError):
    code = "ERR_CRC_MISMATCH"


class InvalidField(QRISError, ValueError):
    code = "ERR_INVALID_FIELD"


class ValueTooLong(QRISError, ValueError):
    code = "ERR_VALUE_TOO_LONG"
