"""Relocation of snapshot nodes in the current document.

A node carries no live reference to its element. To find it again the
locator rebuilds selectors from the captured data: one per enclosing frame
element, used to narrow into that frame, then one for the node itself.
A miss is an expected outcome (the page may have changed) and is reported
as ``None``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..dom.capture import FRAME_TAGS
from ..dom.views import DOMElementNode
from ..selectors.synthesizer import enhanced_css_selector_for_element

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

logger = logging.getLogger(__name__)


class ElementLocator:
    def __init__(self, page: Page, include_dynamic_attributes: bool = True):
        self.page = page
        self.include_dynamic_attributes = include_dynamic_attributes

    def selector_for(self, node: DOMElementNode) -> str:
        return enhanced_css_selector_for_element(node, self.include_dynamic_attributes)

    def frame_chain(self, node: DOMElementNode) -> list[DOMElementNode]:
        """Frame elements enclosing ``node``, outermost first."""
        return [ancestor for ancestor in node.ancestors() if ancestor.tag_name in FRAME_TAGS]

    async def locate(self, node: DOMElementNode) -> ElementHandle | None:
        """Resolve ``node`` to a live handle.

        Returns:
            The element handle, or None when nothing matches or resolution failed
        """
        context: Any = self.page
        narrowed = False
        try:
            for frame_node in self.frame_chain(node):
                context = context.frame_locator(self.selector_for(frame_node))
                narrowed = True

            selector = self.selector_for(node)

            if narrowed:
                locator = context.locator(selector)
                if await locator.count() == 0:
                    logger.debug(f"No match for {selector} inside frame")
                    return None
                return await locator.first.element_handle()

            handle = await context.query_selector(selector)
            if handle is None:
                logger.debug(f"No match for {selector}")
                return None
            await handle.scroll_into_view_if_needed()
            return handle
        except Exception as e:
            logger.warning(f"Failed to locate element {node.xpath}: {e}")
            return None
