"""Payload mutation: field edits, CRC recomputation and static to dynamic conversion."""
from __future__ import annotations

from dataclasses import dataclass

from .crc import compute_checksum
from .errors import InvalidField
from .fields import CRC_PREFIX, CRC_TAG, TagKind, lookup, tag_for
from .tlv import Node, Payload

POINT_OF_INITIATION_STATIC = "11"
POINT_OF_INITIATION_DYNAMIC = "12"
FEE_INDICATOR_FIXED = "02"
FEE_INDICATOR_PERCENT = "03"


@dataclass(frozen=True)
class EncodedPayload:
    payload: str
    crc: str


def _leaf_tag(name: str) -> str:
    tag = tag_for(name)
    entry = lookup(tag)
    if entry is None or entry.kind is not TagKind.LEAF:
        raise InvalidField(f"Field {name!r} is not a leaf field")
    if tag == CRC_TAG:
        raise InvalidField("Tag 63 is managed by recompute_checksum")
    return tag


# Fields inserted directly after a fixed predecessor tag.
_ANCHORS = {"54": "53"}


def _insert_position(nodes: tuple[Node, ...], tag: str) -> int:
    """Index right after the anchor tag if present, else after the last lower tag; never past tag 63."""

    anchor = _ANCHORS.get(tag)
    position = 0
    for index, node in enumerate(nodes):
        if node.tag == CRC_TAG:
            break
        if anchor is not None and node.tag == anchor:
            return index + 1
        if node.tag < tag:
            position = index + 1
    return position


def with_field(payload: Payload, name: str, value: str) -> Payload:
    """Return a new payload with leaf field ``name`` set to ``value``.

    The first existing node of that field is replaced in place. A missing
    field is inserted after the last lower tag, so tag 54 lands right after
    tag 53. The checksum is left untouched.
    """

    tag = _leaf_tag(name)
    replacement = Node.leaf(tag, value)
    nodes = list(payload.nodes)
    for index, node in enumerate(nodes):
        if node.tag == tag:
            nodes[index] = replacement
            return Payload(nodes=tuple(nodes))

    nodes.insert(_insert_position(payload.nodes, tag), replacement)
    return Payload(nodes=tuple(nodes))


def without_field(payload: Payload, name: str) -> Payload:
    """Return a new payload with every node of leaf field ``name`` removed."""

    tag = _leaf_tag(name)
    return Payload(nodes=tuple(node for node in payload if node.tag != tag))


def strip_crc(payload: Payload) -> Payload:
    """Remove Tag 63 (CRC) nodes from a payload."""

    return Payload(nodes=tuple(node for node in payload if node.tag != CRC_TAG))


def recompute_checksum(payload: Payload) -> Payload:
    """Drop any tag 63, then append a fresh CRC over the rest of the payload."""

    body = strip_crc(payload)
    crc_input = f"{body.encode()}{CRC_PREFIX}"
    crc = compute_checksum(crc_input)
    nodes = (*body.nodes, Node.leaf(CRC_TAG, crc))
    return Payload(nodes=nodes, raw=f"{crc_input}{crc}")


def to_dynamic(payload: Payload, amount: str, *, fee: str | None = None, fee_percent: bool = False) -> Payload:
    """Convert a static payload into a dynamic one carrying ``amount``.

    A convenience ``fee`` is stored in tag 56 (fixed) or tag 57 (percentage)
    with the matching indicator in tag 55. The CRC is recomputed last.
    """

    dynamic = with_field(payload, "pointOfInitiationMethod", POINT_OF_INITIATION_DYNAMIC)
    dynamic = with_field(dynamic, "transactionAmount", amount)
    if fee:
        dynamic = without_field(dynamic, "convenienceFeeFixed")
        dynamic = without_field(dynamic, "convenienceFeePercentage")
        if fee_percent:
            dynamic = with_field(dynamic, "tipOrConvenienceIndicator", FEE_INDICATOR_PERCENT)
            dynamic = with_field(dynamic, "convenienceFeePercentage", fee)
        else:
            dynamic = with_field(dynamic, "tipOrConvenienceIndicator", FEE_INDICATOR_FIXED)
            dynamic = with_field(dynamic, "convenienceFeeFixed", fee)
    return recompute_checksum(dynamic)


def encode_payload(payload: Payload) -> EncodedPayload:
    """Serialize a checksummed payload and expose its CRC alongside."""

    crc_nodes = [node for node in payload if node.tag == CRC_TAG]
    crc = crc_nodes[-1].raw if crc_nodes else ""
    return EncodedPayload(payload=payload.encode(), crc=crc)
