"""SRD block-tree container support.

Public entry points:

- :func:`parse` / :func:`serialize` for the block forest
- :func:`default_registry` for tag dispatch
- :func:`resolve` and :class:`AuxBuffers` for ``.srdi``/``.srdv`` access
- :func:`dump_lines` / :func:`tree_to_dict` for the read-only tree dump
"""

from .block import Block, BlockHeader, ResourceDescriptor, Selector
from .dump import dump_lines, tree_to_dict
from .parser import parse, serialize, serialize_block, walk
from .registry import BlockRegistry, default_registry
from .resolver import AuxBuffers, resolve, resolve_range

__all__ = [
    "Block",
    "BlockHeader",
    "ResourceDescriptor",
    "Selector",
    "BlockRegistry",
    "default_registry",
    "parse",
    "serialize",
    "serialize_block",
    "walk",
    "AuxBuffers",
    "resolve",
    "resolve_range",
    "dump_lines",
    "tree_to_dict",
]
