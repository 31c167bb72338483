"""Page-level state and element actions.

``BrowserContext`` owns the current snapshot of one Playwright page: it
refreshes the DOM snapshot together with a screenshot and scroll offsets,
resolves indices against the cached maps and performs clicks and fills on
relocated elements.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image

from ..config.options import BrowserContextConfig
from ..core.dom.capture import remove_highlights
from ..core.dom.service import DomService
from ..core.dom.views import DOMBaseNode, DOMElementNode, ElementMap, SelectorMap
from ..core.locate.relocator import ElementLocator
from ..errors import SnapshotError

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

logger = logging.getLogger(__name__)

SCROLL_INFO_JS = """
() => ({
  pixelsAbove: window.scrollY,
  pixelsBelow: Math.max(
    0,
    document.body.scrollHeight - window.innerHeight - window.scrollY
  ),
})
"""

SYNTHETIC_CLICK_JS = "(el) => el.click()"


@dataclass
class BrowserState:
    element_tree: DOMElementNode
    selector_map: SelectorMap  # interactive elements only
    element_map: ElementMap  # every indexed element and text run
    url: str
    title: str
    screenshot: str = ""  # base64 PNG
    pixels_above: int = 0
    pixels_below: int = 0


@dataclass
class ActionResult:
    """Outcome of a click or fill; ``error`` is set when ``ok`` is False."""

    ok: bool
    index: int | None = None
    error: str | None = None
    used_fallback: bool = False


def _compress_screenshot(png_bytes: bytes, max_width: int) -> str:
    """Downscale a PNG screenshot wider than ``max_width``.

    Args:
        png_bytes: Raw PNG image bytes
        max_width: Maximum width to resize to (0 keeps the original size)

    Returns:
        Base64-encoded PNG string
    """
    if max_width <= 0:
        return base64.b64encode(png_bytes).decode("utf-8")
    try:
        img = Image.open(io.BytesIO(png_bytes))
        if img.width > max_width:
            ratio = max_width / img.width
            new_height = int(img.height * ratio)
            img = img.resize((max_width, new_height), Image.Resampling.LANCZOS)

        output = io.BytesIO()
        img.save(output, format="PNG", optimize=True)
        return base64.b64encode(output.getvalue()).decode("utf-8")
    except (OSError, ValueError) as e:
        logger.debug(f"Screenshot resize failed, keeping original: {e}")
        return base64.b64encode(png_bytes).decode("utf-8")


class BrowserContext:
    def __init__(self, page: Page, config: BrowserContextConfig | None = None):
        self.page = page
        self.config = config or BrowserContextConfig()
        self.current_state: BrowserState | None = None
        self.locator = ElementLocator(page, self.config.include_dynamic_attributes)

    async def get_state(self) -> BrowserState:
        if self.current_state is not None:
            return self.current_state
        return await self.update_state()

    async def update_state(self, focus_element: int = -1) -> BrowserState:
        """Take a fresh snapshot; the previous one is discarded on success.

        Raises:
            SnapshotError: The snapshot failed and there is no cached state
        """
        try:
            await self.remove_highlights()
            content = await DomService(self.page).get_clickable_elements(
                highlight_elements=self.config.highlight_elements,
                focus_element=focus_element,
                viewport_expansion=self.config.viewport_expansion,
                traverse_iframes=self.config.traverse_iframes,
            )
            screenshot = await self.take_screenshot()
            pixels_above, pixels_below = await self.get_scroll_info()

            self.current_state = BrowserState(
                element_tree=content.element_tree,
                selector_map=content.selector_map,
                element_map=content.element_map,
                url=self.page.url,
                title=await self.page.title(),
                screenshot=screenshot,
                pixels_above=pixels_above,
                pixels_below=pixels_below,
            )
            return self.current_state
        except Exception as e:
            if self.current_state is not None:
                logger.warning(f"Failed to update state, serving cached snapshot: {e}")
                return self.current_state
            logger.error(f"Failed to update state: {e}")
            raise SnapshotError(f"Failed to snapshot {self.page.url}: {e}") from e

    async def take_screenshot(self, full_page: bool = False) -> str:
        png_bytes = await self.page.screenshot(full_page=full_page, type="png")
        return _compress_screenshot(png_bytes, self.config.screenshot_max_width)

    async def get_scroll_info(self) -> tuple[int, int]:
        info = await self.page.evaluate(SCROLL_INFO_JS)
        return int(info.get("pixelsAbove") or 0), int(info.get("pixelsBelow") or 0)

    async def remove_highlights(self) -> None:
        try:
            await remove_highlights(self.page)
        except Exception as e:
            logger.debug(f"Failed to remove highlights: {e}")

    # === Lookups ===

    async def get_selector_map(self) -> SelectorMap:
        state = await self.get_state()
        return state.selector_map

    async def get_element_map(self) -> ElementMap:
        state = await self.get_state()
        return state.element_map

    async def get_dom_element_by_index(self, index: int) -> DOMElementNode | None:
        selector_map = await self.get_selector_map()
        return selector_map.get(index)

    async def get_all_element_by_index(self, index: int) -> DOMBaseNode | None:
        element_map = await self.get_element_map()
        return element_map.get(index)

    async def get_element_by_index(self, index: int) -> ElementHandle | None:
        node = await self.get_dom_element_by_index(index)
        if node is None:
            return None
        return await self.get_locate_element(node)

    async def get_locate_element(self, node: DOMElementNode) -> ElementHandle | None:
        return await self.locator.locate(node)

    # === Actions ===

    async def click_element_node(self, node: DOMElementNode) -> ActionResult:
        """Click ``node``, retrying once with a DOM ``click()`` if the native click fails."""
        index = node.highlight_index
        handle = await self.get_locate_element(node)
        if handle is None:
            return ActionResult(ok=False, index=index, error="Element not found")

        used_fallback = False
        try:
            await handle.click(timeout=self.config.click_timeout_ms)
        except Exception as e:
            logger.debug(f"Native click on index {index} failed, dispatching click(): {e}")
            try:
                await handle.evaluate(SYNTHETIC_CLICK_JS)
                used_fallback = True
            except Exception as fallback_error:
                logger.error(f"Failed to click element {index}: {fallback_error}")
                return ActionResult(ok=False, index=index, error=str(fallback_error))

        await self._pause()
        return ActionResult(ok=True, index=index, used_fallback=used_fallback)

    async def input_text_element_node(self, node: DOMElementNode, text: str) -> ActionResult:
        index = node.highlight_index
        handle = await self.get_locate_element(node)
        if handle is None:
            return ActionResult(ok=False, index=index, error="Element not found")

        try:
            await handle.fill(text)
        except Exception as e:
            logger.error(f"Failed to input text into element {index}: {e}")
            return ActionResult(ok=False, index=index, error=str(e))

        await self._pause()
        return ActionResult(ok=True, index=index)

    async def _pause(self) -> None:
        if self.config.wait_between_actions > 0:
            await asyncio.sleep(self.config.wait_between_actions)
