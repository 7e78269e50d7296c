"""Tag -> payload codec registry.

Decoding dispatches on the 4-character block tag. Tags without a decoder
fall back to :class:`OpaquePayload`, which re-emits its bytes unchanged, so
adding a new tag never changes how the others round-trip.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..errors import Diagnostics, SrdError, W_SHORT_PAYLOAD
from .payloads import OpaquePayload, register_builtin

__all__ = [
    "DecodeFn",
    "EncodeFn",
    "BlockRegistry",
    "default_registry",
]

DecodeFn = Callable[[bytes, Diagnostics], Any]
EncodeFn = Callable[[Any], bytes]


@dataclass(frozen=True, slots=True)
class _Entry:
    decode: DecodeFn
    encode: Optional[EncodeFn] = None


class BlockRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    def register(
        self, tag: str, decode: DecodeFn, encode: Optional[EncodeFn] = None
    ) -> None:
        if len(tag) != 4:
            raise ValueError(f"Block tags are 4 characters, got {tag!r}")
        self._entries[tag] = _Entry(decode, encode)

    def is_known(self, tag: str) -> bool:
        return tag in self._entries

    def can_encode(self, tag: str) -> bool:
        entry = self._entries.get(tag)
        return entry is not None and entry.encode is not None

    def tags(self) -> List[str]:
        return sorted(self._entries)

    def decode(
        self, tag: str, payload: bytes, diagnostics: Diagnostics | None = None
    ) -> Any:
        diag = diagnostics if diagnostics is not None else Diagnostics()
        entry = self._entries.get(tag)
        if entry is None:
            return OpaquePayload(payload)
        try:
            return entry.decode(payload, diag)
        except (SrdError, ValueError, struct.error) as e:
            # Decoders tolerate short input; anything else keeps the bytes.
            diag.warn(
                W_SHORT_PAYLOAD,
                f"{tag} payload kept opaque after decode failure: {e}",
            )
            return OpaquePayload(payload)

    def encode(self, tag: str, value: Any, raw: bytes | None = None) -> bytes:
        if isinstance(value, OpaquePayload):
            return value.data
        entry = self._entries.get(tag)
        if entry is not None and entry.encode is not None:
            return entry.encode(value)
        if raw is None:
            raise SrdError(
                code="E_ENCODE",
                message=f"No encoder for {tag} and no raw payload to re-emit",
            )
        return raw


_DEFAULT: BlockRegistry | None = None


def default_registry() -> BlockRegistry:
    """Process-wide registry holding every statically known tag."""
    global _DEFAULT
    if _DEFAULT is None:
        registry = BlockRegistry()
        register_builtin(registry)
        _DEFAULT = registry
    return _DEFAULT
