"""Pydantic schemas for API contracts."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .crc import ChecksumResult, ChecksumStatus
from .tlv import Node


class DecodeRequest(BaseModel):
    payload: str = Field(min_length=1, description="QRIS string read from the QR symbol")


class NodeModel(BaseModel):
    tag: str
    length: int
    name: str | None = None
    value: str | None = None
    children: list[NodeModel] | None = None

    @classmethod
    def from_node(cls, node: Node, name: str | None = None) -> NodeModel:
        if node.is_composite:
            return cls(
                tag=node.tag,
                length=node.length,
                name=name,
                children=[cls.from_node(child) for child in node.children],
            )
        return cls(tag=node.tag, length=node.length, name=name, value=node.raw)


class ChecksumModel(BaseModel):
    status: ChecksumStatus
    valid: bool
    expected: str | None = None
    actual: str | None = None

    @classmethod
    def from_result(cls, result: ChecksumResult) -> ChecksumModel:
        return cls(status=result.status, valid=result.valid, expected=result.expected, actual=result.actual)


class DecodeResponse(BaseModel):
    payload: str
    fields: dict[str, str | None]
    nodes: list[NodeModel]
    checksum: ChecksumModel


class DynamicRequest(BaseModel):
    payload: str = Field(min_length=1, description="Static QRIS string")
    amount: str = Field(pattern=r"^\d{1,10}(\.\d{1,2})?$", max_length=13)
    fee: str | None = Field(default=None, pattern=r"^\d{1,10}(\.\d{1,2})?$", max_length=13)
    fee_percent: bool = False
    require_valid_checksum: bool = True
    render: bool | None = None


class DynamicResponse(BaseModel):
    payload: str
    crc: str
    source_checksum: ChecksumModel
    fields: dict[str, str | None]
    qr_png_base64: str | None = None


class ErrorResponse(BaseModel):
    code: str
    message: str
    path: list[str] = Field(default_factory=list)
