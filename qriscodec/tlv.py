"""Recursive decoder and serializer for EMV-style TLV payloads."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .config import settings
from .errors import ExcessiveNesting, InvalidLength, TruncatedTag, TruncatedValue, ValueTooLong
from .fields import TagKind, classify

logger = logging.getLogger("qriscodec.codec")

MAX_VALUE_LENGTH = 99
_DIGITS = frozenset("0123456789")


def _checked_length(tag: str, raw: str) -> int:
    if len(raw) > MAX_VALUE_LENGTH:
        raise ValueTooLong(f"Tag {tag} value has {len(raw)} characters, limit is {MAX_VALUE_LENGTH}")
    return len(raw)


@dataclass(frozen=True, slots=True)
class Node:
    """One TLV element. ``value`` is a string for leaves, a tuple of nodes for composites."""

    tag: str
    value: str | tuple[Node, ...]
    length: int

    @classmethod
    def leaf(cls, tag: str, value: str) -> Node:
        return cls(tag=tag, value=value, length=_checked_length(tag, value))

    @classmethod
    def composite(cls, tag: str, items: Iterable[Node]) -> Node:
        items = tuple(items)
        return cls(tag=tag, value=items, length=_checked_length(tag, build_tlv(items)))

    @property
    def is_composite(self) -> bool:
        return isinstance(self.value, tuple)

    @property
    def children(self) -> tuple[Node, ...]:
        return self.value if isinstance(self.value, tuple) else ()

    @property
    def raw(self) -> str:
        """Textual value as it appears on the wire."""

        if isinstance(self.value, tuple):
            return build_tlv(self.value)
        return self.value

    def serialize(self) -> str:
        raw = self.raw
        length = f"{_checked_length(self.tag, raw):02d}"
        return f"{self.tag}{length}{raw}"


@dataclass(frozen=True, slots=True)
class Payload:
    """Ordered top-level nodes; duplicates are kept in input order.

    ``raw`` holds the decoded source string so the checksum can be checked
    against literal bytes. It takes no part in equality.
    """

    nodes: tuple[Node, ...] = ()
    raw: str | None = field(default=None, compare=False, repr=False)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> Node:
        return self.nodes[index]

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(node.tag for node in self.nodes)

    def encode(self) -> str:
        return build_tlv(self.nodes)


def build_tlv(items: Iterable[Node]) -> str:
    """Serialize nodes into an EMV string, recomputing every length."""

    return "".join(item.serialize() for item in items)


def encode(payload: Payload) -> str:
    return payload.encode()


def decode(text: str, *, max_depth: int | None = None) -> Payload:
    """Decode ``text`` into a :class:`Payload`.

    Composite tags are decoded recursively; leaves are kept verbatim. Raises a
    :class:`~qriscodec.errors.ParseError` subclass on malformed input.
    """

    limit = settings.max_depth if max_depth is None else max_depth
    nodes = _decode(text, depth=0, max_depth=limit, base=0, path=())
    logger.debug("payload decoded", extra={"nodes": len(nodes), "chars": len(text)})
    return Payload(nodes=nodes, raw=text)


def _decode(text: str, *, depth: int, max_depth: int, base: int, path: tuple[str, ...]) -> tuple[Node, ...]:
    parent = path[-1] if path else None
    nodes: list[Node] = []
    idx = 0
    total = len(text)
    while idx < total:
        if total - idx < 2:
            raise TruncatedTag("Input ends inside a tag", offset=base + idx, path=path)
        tag = text[idx : idx + 2]

        length_text = text[idx + 2 : idx + 4]
        if len(length_text) != 2 or not all(ch in _DIGITS for ch in length_text):
            raise InvalidLength(
                f"Tag {tag} has length field {length_text!r}, expected two digits",
                offset=base + idx + 2,
                path=path,
            )
        length = int(length_text)

        value_start = idx + 4
        value_end = value_start + length
        if value_end > total:
            raise TruncatedValue(
                f"Tag {tag} declares {length} characters but {total - value_start} remain",
                offset=base + value_start,
                path=path,
            )
        value: str | tuple[Node, ...] = text[value_start:value_end]

        if classify(tag, parent) is TagKind.COMPOSITE:
            if depth >= max_depth:
                raise ExcessiveNesting(
                    f"Tag {tag} nests deeper than {max_depth} levels",
                    offset=base + value_start,
                    path=(*path, tag),
                )
            value = _decode(value, depth=depth + 1, max_depth=max_depth, base=base + value_start, path=(*path, tag))

        nodes.append(Node(tag=tag, value=value, length=length))
        idx = value_end
    return tuple(nodes)
