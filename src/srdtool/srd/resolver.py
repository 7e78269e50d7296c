"""Bounds-checked access to the auxiliary ``.srdi``/``.srdv`` buffers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import out_of_range
from ..utils.io import read_optional
from ..utils.paths import aux_paths
from .block import ResourceDescriptor, Selector

__all__ = ["AuxBuffers", "resolve", "resolve_range"]


def resolve_range(
    buffer: Optional[bytes], offset: int, length: int, label: str = "resource"
) -> bytes:
    """Slice ``buffer[offset:offset+length]`` or raise ``OutOfRangeError``.

    ``None`` is treated as a zero-length buffer.
    """
    data = buffer or b""
    if offset < 0 or length < 0 or offset + length > len(data):
        raise out_of_range(
            f"{label} 0x{offset:X}+0x{length:X} exceeds buffer "
            f"of 0x{len(data):X} bytes",
            {"offset": offset, "length": length, "buffer_size": len(data)},
        )
    return data[offset : offset + length]


def resolve(
    descriptor: ResourceDescriptor,
    primary: Optional[bytes],
    secondary: Optional[bytes],
) -> bytes:
    buffer = primary if descriptor.selector is Selector.PRIMARY else secondary
    return resolve_range(
        buffer,
        descriptor.masked_offset,
        descriptor.length,
        f"{descriptor.selector.name.lower()} resource",
    )


@dataclass(frozen=True, slots=True)
class AuxBuffers:
    primary: bytes = b""  # "I" / .srdi
    secondary: bytes = b""  # "V" / .srdv

    def select(self, selector: Selector) -> bytes:
        return self.primary if selector is Selector.PRIMARY else self.secondary

    def resolve(self, descriptor: ResourceDescriptor) -> bytes:
        return resolve(descriptor, self.primary, self.secondary)

    @classmethod
    def for_container(
        cls,
        container: Path,
        primary_path: Optional[Path] = None,
        secondary_path: Optional[Path] = None,
    ) -> "AuxBuffers":
        default_primary, default_secondary = aux_paths(container)
        return cls(
            read_optional(primary_path or default_primary),
            read_optional(secondary_path or default_secondary),
        )
