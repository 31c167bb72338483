"""Snapshot construction.

The live document is read once per frame by ``capture.py``; this module
walks the captured records depth-first in document order, classifies each
element, and hands out the two index spaces:

- highlight indices go to visible interactive elements only;
- element indices go to every highlighted element and to text runs that sit
  below a highlighted element.

Both counters live in ``IndexCounters`` and are threaded through the walk so
their divergence stays visible in one place.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ...errors import SnapshotError
from .capture import FRAME_TAGS, capture_frame, draw_highlights, frame_elements
from .classifier import (
    extract_direct_text,
    is_element_in_viewport,
    is_element_interactive,
    is_element_visible,
)
from .paths import PathStep, structural_path
from .views import (
    CoordinateSet,
    DOMElementNode,
    DOMState,
    DOMTextNode,
    DOMTree,
    ElementMap,
    SelectorMap,
    ViewportInfo,
)

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Frame, Page

logger = logging.getLogger(__name__)


@dataclass
class IndexCounters:
    """The two independent counters of one traversal."""

    highlight: int = 0
    element: int = 0

    def next_highlight(self) -> int:
        value = self.highlight
        self.highlight += 1
        return value

    def next_element(self) -> int:
        value = self.element
        self.element += 1
        return value


@dataclass
class _FrameContext:
    frame: Any  # Page or Frame the records were captured from
    viewport: ViewportInfo
    depth: int
    highlights: list[dict[str, Any]] = field(default_factory=list)
    frame_handles: list[ElementHandle | None] | None = None


def _viewport_from(payload: Mapping[str, Any]) -> ViewportInfo:
    raw = payload.get("viewport") or {}
    return ViewportInfo(
        width=int(raw.get("width") or 0),
        height=int(raw.get("height") or 0),
        scroll_x=float(raw.get("scrollX") or 0),
        scroll_y=float(raw.get("scrollY") or 0),
    )


def _attributes_from(record: Mapping[str, Any]) -> dict[str, str]:
    raw = record.get("attributes")
    if not isinstance(raw, Mapping):
        return {}
    return {str(key): str(value) for key, value in raw.items()}


def _coordinates_from(
    record: Mapping[str, Any], viewport: ViewportInfo
) -> tuple[CoordinateSet | None, CoordinateSet | None]:
    rect = record.get("rect")
    if not isinstance(rect, Mapping):
        return None, None
    try:
        in_viewport = CoordinateSet(
            x=float(rect["x"]),
            y=float(rect["y"]),
            width=float(rect["width"]),
            height=float(rect["height"]),
        )
    except (KeyError, TypeError, ValueError):
        return None, None
    on_page = CoordinateSet(
        x=in_viewport.x + viewport.scroll_x,
        y=in_viewport.y + viewport.scroll_y,
        width=in_viewport.width,
        height=in_viewport.height,
    )
    return in_viewport, on_page


def _child_steps(children: list[Any]) -> list[PathStep | None]:
    """Path steps for each child record (None for text runs)."""
    tags = [
        str(child.get("tag", ""))
        for child in children
        if isinstance(child, Mapping) and child.get("type") == "element"
    ]
    totals = Counter(tags)
    seen: Counter[str] = Counter()
    steps: list[PathStep | None] = []
    for child in children:
        if not isinstance(child, Mapping) or child.get("type") != "element":
            steps.append(None)
            continue
        tag = str(child.get("tag", ""))
        seen[tag] += 1
        attributes = child.get("attributes") if isinstance(child.get("attributes"), Mapping) else {}
        steps.append(
            PathStep(
                tag=tag,
                element_id=str(attributes.get("id", "") or ""),
                ordinal=seen[tag],
                same_tag_count=totals[tag],
            )
        )
    return steps


class TreeBuilder:
    """Builds one ``DOMState`` from the live page.

    Args:
        highlight_elements: Draw numbered overlays for highlighted elements
        focus_element: Highlight index drawn in the focus colour (-1 for none)
        viewport_expansion: Pixels added around the viewport for visibility
        traverse_iframes: Capture frame documents below iframe/frame elements
    """

    def __init__(
        self,
        highlight_elements: bool = True,
        focus_element: int = -1,
        viewport_expansion: int = 0,
        traverse_iframes: bool = True,
    ):
        self.highlight_elements = highlight_elements
        self.focus_element = focus_element
        self.viewport_expansion = viewport_expansion
        self.traverse_iframes = traverse_iframes

        self._tree = DOMTree()
        self._counters = IndexCounters()
        self._selector_map: SelectorMap = {}
        self._element_map: ElementMap = {}

    async def build(self, page: Page | Frame) -> DOMState:
        self._tree = DOMTree()
        self._counters = IndexCounters()
        self._selector_map = {}
        self._element_map = {}

        root = await self._build_document(page, parent=None, depth=0)
        if root is None:
            raise SnapshotError("Document has no body to snapshot")

        return DOMState(
            element_tree=root,
            selector_map=self._selector_map,
            element_map=self._element_map,
            tree=self._tree,
        )

    async def _build_document(
        self, frame: Page | Frame, parent: DOMElementNode | None, depth: int
    ) -> DOMElementNode | None:
        payload = await capture_frame(frame)
        if payload is None:
            return None

        ctx = _FrameContext(frame=frame, viewport=_viewport_from(payload), depth=depth)
        lineage = [PathStep(tag="html", element_id=str(payload.get("htmlId") or ""))]
        root_record = payload["root"]
        body_id = str(_attributes_from(root_record).get("id", ""))
        root_step = PathStep(tag=str(root_record.get("tag") or "body"), element_id=body_id)

        root = await self._visit(root_record, root_step, lineage, parent, ctx, is_top=True)

        if self.highlight_elements and ctx.highlights:
            try:
                await draw_highlights(frame, ctx.highlights)
            except Exception as e:
                logger.warning(f"Failed to draw highlight overlay: {e}")
        return root

    async def _visit(
        self,
        record: Mapping[str, Any],
        step: PathStep,
        lineage: list[PathStep],
        parent: DOMElementNode | None,
        ctx: _FrameContext,
        is_top: bool = False,
    ) -> DOMElementNode:
        path = [*lineage, step]
        attributes = _attributes_from(record)
        is_visible = is_element_visible(record, ctx.viewport, self.viewport_expansion)
        viewport_coordinates, page_coordinates = _coordinates_from(record, ctx.viewport)

        node = DOMElementNode(
            is_visible=is_visible,
            tag_name=step.tag,
            xpath=structural_path(path),
            attributes=attributes,
            is_interactive=is_element_interactive(step.tag, attributes),
            is_top_element=is_top,
            is_in_viewport=is_element_in_viewport(record, ctx.viewport),
            shadow_root=bool(record.get("shadowRoot")),
            text=extract_direct_text(record),
            frame_depth=ctx.depth,
            viewport_coordinates=viewport_coordinates,
            page_coordinates=page_coordinates,
            viewport_info=ctx.viewport,
        )
        self._tree.add(node, parent)

        if node.is_visible and node.is_interactive:
            node.highlight_index = self._counters.next_highlight()
            self._selector_map[node.highlight_index] = node
        if node.highlight_index is not None:
            node.element_index = self._counters.next_element()
            self._element_map[node.element_index] = node

        if self.highlight_elements and node.highlight_index is not None and viewport_coordinates:
            ctx.highlights.append(
                {
                    "index": node.highlight_index,
                    "focused": node.highlight_index == self.focus_element,
                    "x": viewport_coordinates.x,
                    "y": viewport_coordinates.y,
                    "width": viewport_coordinates.width,
                    "height": viewport_coordinates.height,
                }
            )

        children = list(record.get("children") or [])
        for child, child_step in zip(children, _child_steps(children), strict=True):
            if child_step is None:
                if isinstance(child, Mapping) and child.get("type") == "text":
                    self._add_text(str(child.get("text", "")).strip(), node)
                continue
            await self._visit(child, child_step, path, node, ctx)

        if self.traverse_iframes and step.tag in FRAME_TAGS:
            await self._descend_into_frame(node, record, ctx)

        return node

    def _add_text(self, text: str, parent: DOMElementNode) -> None:
        if not text:
            return
        text_node = DOMTextNode(is_visible=parent.is_visible, text=text)
        self._tree.add(text_node, parent)
        # Text only joins the element index space below a highlighted element
        if text_node.has_parent_with_highlight_index():
            text_node.element_index = self._counters.next_element()
            self._element_map[text_node.element_index] = text_node

    async def _descend_into_frame(
        self, node: DOMElementNode, record: Mapping[str, Any], ctx: _FrameContext
    ) -> None:
        frame_index = record.get("frameIndex")
        if not isinstance(frame_index, int) or frame_index < 0:
            return
        try:
            if ctx.frame_handles is None:
                ctx.frame_handles = await frame_elements(ctx.frame)
            if frame_index >= len(ctx.frame_handles):
                return
            handle = ctx.frame_handles[frame_index]
            if handle is None:
                return
            child_frame = await handle.content_frame()
            if child_frame is None:
                return
            await self._build_document(child_frame, parent=node, depth=ctx.depth + 1)
        except Exception as e:
            logger.debug(f"Skipping frame {node.xpath}: {e}")
