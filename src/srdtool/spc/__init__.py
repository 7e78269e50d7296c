"""``CPS.`` subfile archives that ship alongside SRD containers."""

from .archive import (
    FLAG_COMPRESSED,
    FLAG_UNCOMPRESSED,
    Codec,
    SpcArchive,
    SpcSubfile,
)

__all__ = [
    "Codec",
    "SpcArchive",
    "SpcSubfile",
    "FLAG_COMPRESSED",
    "FLAG_UNCOMPRESSED",
]
