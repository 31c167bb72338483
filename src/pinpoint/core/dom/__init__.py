from __future__ import annotations

from .builder import IndexCounters, TreeBuilder
from .service import DomService
from .views import (
    CoordinateSet,
    DOMBaseNode,
    DOMElementNode,
    DOMState,
    DOMTextNode,
    DOMTree,
    ElementMap,
    SelectorMap,
    ViewportInfo,
)

__all__ = [
    "CoordinateSet",
    "DOMBaseNode",
    "DOMElementNode",
    "DOMState",
    "DOMTextNode",
    "DOMTree",
    "DomService",
    "ElementMap",
    "IndexCounters",
    "SelectorMap",
    "TreeBuilder",
    "ViewportInfo",
]
