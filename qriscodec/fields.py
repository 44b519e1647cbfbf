"""EMVCo/QRIS field dictionary and lookup helpers."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InvalidField

if TYPE_CHECKING:
    from .tlv import Node, Payload


class TagKind(str, enum.Enum):
    LEAF = "leaf"
    COMPOSITE = "composite"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FieldDef:
    tag: str
    name: str
    kind: TagKind


MERCHANT_ACCOUNT_INFORMATION = "merchantAccountInformation"
CRC_TAG = "63"
CRC_PREFIX = "6304"


def _build_dictionary() -> dict[str, FieldDef]:
    entries = [
        FieldDef("00", "payloadFormatIndicator", TagKind.LEAF),
        FieldDef("01", "pointOfInitiationMethod", TagKind.LEAF),
    ]
    # 02-25 are reserved for card schemes, 26-51 for domestic schemes such as QRIS.
    entries.extend(FieldDef(f"{tag:02d}", MERCHANT_ACCOUNT_INFORMATION, TagKind.COMPOSITE) for tag in range(2, 52))
    entries.extend(
        [
            FieldDef("52", "merchantCategoryCode", TagKind.LEAF),
            FieldDef("53", "transactionCurrency", TagKind.LEAF),
            FieldDef("54", "transactionAmount", TagKind.LEAF),
            FieldDef("55", "tipOrConvenienceIndicator", TagKind.LEAF),
            FieldDef("56", "convenienceFeeFixed", TagKind.LEAF),
            FieldDef("57", "convenienceFeePercentage", TagKind.LEAF),
            FieldDef("58", "countryCode", TagKind.LEAF),
            FieldDef("59", "merchantName", TagKind.LEAF),
            FieldDef("60", "merchantCity", TagKind.LEAF),
            FieldDef("61", "postalCode", TagKind.LEAF),
            FieldDef("62", "additionalDataFieldTemplate", TagKind.COMPOSITE),
            FieldDef(CRC_TAG, "crc", TagKind.LEAF),
            FieldDef("64", "merchantInformationLanguageTemplate", TagKind.COMPOSITE),
        ]
    )
    return {entry.tag: entry for entry in entries}


FIELDS: dict[str, FieldDef] = _build_dictionary()

# Canonical names in first-seen order; merchantAccountInformation spans many tags.
FIELD_NAMES: tuple[str, ...] = tuple(dict.fromkeys(entry.name for entry in FIELDS.values()))

_TAGS_BY_NAME: dict[str, tuple[str, ...]] = {
    name: tuple(tag for tag, entry in FIELDS.items() if entry.name == name) for name in FIELD_NAMES
}

# Payment system specific templates nested inside the additional data field.
_NESTED_TEMPLATES: dict[str, frozenset[str]] = {
    "62": frozenset(f"{tag:02d}" for tag in range(50, 100)),
}


def classify(tag: str, parent: str | None = None) -> TagKind:
    """Classify ``tag`` as leaf or composite.

    Top-level tags are looked up in the field dictionary. Inside a composite
    every sub-tag is a leaf unless the parent declares nested templates.
    Unknown top-level tags report ``UNKNOWN`` and are decoded as leaves.
    """

    if parent is None:
        entry = FIELDS.get(tag)
        return entry.kind if entry else TagKind.UNKNOWN
    if tag in _NESTED_TEMPLATES.get(parent, ()):
        return TagKind.COMPOSITE
    return TagKind.LEAF


def lookup(tag: str) -> FieldDef | None:
    return FIELDS.get(tag)


def tags_for(name: str) -> tuple[str, ...]:
    try:
        return _TAGS_BY_NAME[name]
    except KeyError:
        raise InvalidField(f"Unknown field name {name!r}") from None


def tag_for(name: str) -> str:
    """Return the single tag carrying the canonical ``name``."""

    tags = tags_for(name)
    if len(tags) != 1:
        raise InvalidField(f"Field {name!r} spans tags {tags[0]}-{tags[-1]}")
    return tags[0]


def resolve(payload: Payload, name: str) -> Node | None:
    """Return the first top-level node carrying ``name``, or ``None``."""

    tags = tags_for(name)
    for node in payload:
        if node.tag in tags:
            return node
    return None


def children(node: Node) -> tuple[Node, ...]:
    return node.children


def flatten(payload: Payload) -> dict[str, str | None]:
    """Map every canonical field name to the raw value of its first node."""

    view: dict[str, str | None] = dict.fromkeys(FIELD_NAMES)
    for node in payload:
        entry = FIELDS.get(node.tag)
        if entry and view[entry.name] is None:
            view[entry.name] = node.raw
    return view
