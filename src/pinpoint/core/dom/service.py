from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .builder import TreeBuilder
from .views import DOMState

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


class DomService:
    """Snapshots the interactive structure of one page."""

    def __init__(self, page: Page):
        self.page = page

    async def get_clickable_elements(
        self,
        highlight_elements: bool = True,
        focus_element: int = -1,
        viewport_expansion: int = 0,
        traverse_iframes: bool = True,
    ) -> DOMState:
        builder = TreeBuilder(
            highlight_elements=highlight_elements,
            focus_element=focus_element,
            viewport_expansion=viewport_expansion,
            traverse_iframes=traverse_iframes,
        )
        state = await builder.build(self.page)
        logger.debug(
            f"Snapshot of {self.page.url}: {len(state.selector_map)} interactive, "
            f"{len(state.element_map)} indexed"
        )
        return state
