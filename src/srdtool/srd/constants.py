"""SRD container constants (header layout, tags, magics, masks)."""

from __future__ import annotations

import struct

# Block header: tag, payload length, child length, unknown, resource
# offset, resource length, resource selector, reserved. Big-endian.
BLOCK_HEADER = struct.Struct(">4sIIIIIII")
BLOCK_HEADER_SIZE = BLOCK_HEADER.size  # 0x20
BLOCK_ALIGNMENT = 16

TAG_SIZE = 4
TAG_MARKER = "$CFH"
TAG_FOLDER = "$RSF"
TAG_TERMINATOR = "$CT0"
TAG_VERTEX = "$VTX"
TAG_RESOURCE_INDEX = "$RSI"

# Stored big-endian at the start of the payload; spells the tag itself.
MARKER_MAGIC = 0x24434648  # "$CFH"
FOLDER_MAGIC = 0x24525346  # "$RSF"

# Maps every byte, so non-ASCII folder names re-encode byte-exact.
FOLDER_NAME_ENCODING = "latin-1"

# Low 29 bits address the auxiliary buffer; the top 3 are reserved.
OFFSET_MASK = 0x1FFFFFFF

SELECTOR_PRIMARY = 0
SELECTOR_SECONDARY = 1

CONTAINER_EXTENSION = ".srd"

VERTEX_HEADER_SIZE = 0x20
RESOURCE_INDEX_HEADER_SIZE = 0x10
RESOURCE_ENTRY_ALIGNMENT = 16

__all__ = [
    "BLOCK_HEADER",
    "BLOCK_HEADER_SIZE",
    "BLOCK_ALIGNMENT",
    "TAG_SIZE",
    "TAG_MARKER",
    "TAG_FOLDER",
    "TAG_TERMINATOR",
    "TAG_VERTEX",
    "TAG_RESOURCE_INDEX",
    "MARKER_MAGIC",
    "FOLDER_MAGIC",
    "FOLDER_NAME_ENCODING",
    "OFFSET_MASK",
    "SELECTOR_PRIMARY",
    "SELECTOR_SECONDARY",
    "CONTAINER_EXTENSION",
    "VERTEX_HEADER_SIZE",
    "RESOURCE_INDEX_HEADER_SIZE",
    "RESOURCE_ENTRY_ALIGNMENT",
]
