"""SrdTool package

Decoders for SRD block-tree containers (with their ``.srdi``/``.srdv``
auxiliary buffers) and SPC archives, plus a Wavefront OBJ exporter for the
meshes stored in SRD files.

Prefer the high-level helpers in :mod:`srdtool.api` or the command line
entry point in :mod:`srdtool.cli`.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
