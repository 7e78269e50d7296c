"""Block tree data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Tuple

from .constants import OFFSET_MASK, SELECTOR_PRIMARY, SELECTOR_SECONDARY

__all__ = ["Selector", "ResourceDescriptor", "BlockHeader", "Block"]


class Selector(IntEnum):
    PRIMARY = SELECTOR_PRIMARY  # "I" buffer (.srdi)
    SECONDARY = SELECTOR_SECONDARY  # "V" buffer (.srdv)

    @classmethod
    def from_letter(cls, letter: str) -> "Selector":
        return {"i": cls.PRIMARY, "v": cls.SECONDARY}[letter.lower()]

    @property
    def letter(self) -> str:
        return "i" if self is Selector.PRIMARY else "v"


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    selector: Selector
    offset: int  # raw u32 as stored; see masked_offset
    length: int

    @property
    def masked_offset(self) -> int:
        return self.offset & OFFSET_MASK

    @property
    def reserved_bits(self) -> int:
        return self.offset >> 29

    def to_dict(self) -> dict:
        return {
            "selector": self.selector.name.lower(),
            "offset": self.masked_offset,
            "raw_offset": self.offset,
            "length": self.length,
        }


@dataclass(frozen=True, slots=True)
class BlockHeader:
    """Header words kept verbatim so a block re-encodes byte-exact."""

    unknown0c: int = 0
    resource_offset: int = 0
    resource_length: int = 0
    resource_selector: int = 0
    reserved: int = 0


@dataclass(frozen=True, slots=True)
class Block:
    tag: str
    payload_length: int
    payload: Any
    raw: bytes = field(repr=False)
    children: Tuple["Block", ...] = ()
    descriptor: Optional[ResourceDescriptor] = None
    header: BlockHeader = BlockHeader()
    known: bool = True

    def child(self, index: int) -> Optional["Block"]:
        if 0 <= index < len(self.children):
            return self.children[index]
        return None
