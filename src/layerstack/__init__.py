"""
layerstack - in-memory model of an image document's layer stack.

Builds a layer tree from a host snapshot and keeps it in sync with the
host's flat layer numbering as incremental change batches arrive.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("layerstack")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from layerstack.changes import LayerRecord  # noqa: E402
from layerstack.document import Document  # noqa: E402
from layerstack.errors import LayerStackError, StructuralError  # noqa: E402
from layerstack.layers import LayerGroup, LayerNode, create_layer  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    "Document",
    "LayerGroup",
    "LayerNode",
    "LayerRecord",
    "LayerStackError",
    "StructuralError",
    "create_layer",
]
