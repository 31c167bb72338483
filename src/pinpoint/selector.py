"""Public entry point combining snapshots, LLM selection and actions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .adapters.browser_context import ActionResult, BrowserContext, BrowserState
from .config.options import DOMSelectorConfig
from .core.dom.views import DOMBaseNode, DOMElementNode, ElementMap
from .core.selection.llm_selector import ChatModel, ElementSelectionResult, LLMSelector
from .errors import ActionError, ElementNotFoundError

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


def _raise_for_failure(result: ActionResult) -> None:
    if not result.ok:
        raise ActionError(result.index, result.error or "unknown error")


class DOMSelector:
    """Select and act on page elements described in natural language.

    Usage:
        selector = DOMSelector(page, AnthropicChatModel())
        result = await selector.select_and_click("the sign in button")
    """

    def __init__(self, page: Page, llm: ChatModel, config: DOMSelectorConfig | None = None):
        self.config = config or DOMSelectorConfig()
        self.browser_context = BrowserContext(page, self.config.browser_context)
        self.llm_selector = LLMSelector(llm, self.config.llm_selector)

    async def get_browser_state(self) -> BrowserState:
        return await self.browser_context.get_state()

    async def select_element(self, prompt: str) -> ElementSelectionResult:
        state = await self.browser_context.get_state()
        return await self.llm_selector.select_element(prompt, state)

    async def select_element_from_all_elements(self, prompt: str) -> ElementSelectionResult:
        state = await self.browser_context.get_state()
        return await self.llm_selector.select_element_from_all_elements(prompt, state)

    async def get_element_by_index(self, index: int) -> DOMElementNode | None:
        return await self.browser_context.get_dom_element_by_index(index)

    async def get_interactive_elements(self) -> list[DOMElementNode]:
        selector_map = await self.browser_context.get_selector_map()
        return list(selector_map.values())

    async def get_all_elements(self) -> list[DOMBaseNode]:
        element_map = await self.browser_context.get_element_map()
        return list(element_map.values())

    async def get_element_map(self) -> ElementMap:
        return await self.browser_context.get_element_map()

    async def get_non_interactive_elements(self) -> list[DOMBaseNode]:
        """Indexed nodes that are not interactive (text runs included)."""
        element_map = await self.browser_context.get_element_map()
        return [
            node
            for node in element_map.values()
            if not (isinstance(node, DOMElementNode) and node.is_interactive)
        ]

    async def get_element_by_element_index(self, index: int) -> DOMBaseNode | None:
        return await self.browser_context.get_all_element_by_index(index)

    async def click_element_by_index(self, index: int) -> ActionResult:
        """Click the interactive element with highlight index ``index``.

        Raises:
            ElementNotFoundError: No such index in the current snapshot
            ActionError: The element could not be relocated or clicked
        """
        node = await self.browser_context.get_dom_element_by_index(index)
        if node is None:
            raise ElementNotFoundError(index)
        result = await self.browser_context.click_element_node(node)
        _raise_for_failure(result)
        return result

    async def input_text_to_element_by_index(self, index: int, text: str) -> ActionResult:
        node = await self.browser_context.get_dom_element_by_index(index)
        if node is None:
            raise ElementNotFoundError(index)
        result = await self.browser_context.input_text_element_node(node, text)
        _raise_for_failure(result)
        return result

    async def select_and_click(self, prompt: str) -> ElementSelectionResult:
        result = await self.select_element(prompt)
        if isinstance(result.selected_element, DOMElementNode):
            _raise_for_failure(await self.browser_context.click_element_node(result.selected_element))
        else:
            logger.info(f"Nothing to click for '{prompt}': {result.reasoning}")
        return result

    async def select_and_input_text(self, prompt: str, text: str) -> ElementSelectionResult:
        result = await self.select_element(prompt)
        if isinstance(result.selected_element, DOMElementNode):
            _raise_for_failure(
                await self.browser_context.input_text_element_node(result.selected_element, text)
            )
        else:
            logger.info(f"Nothing to fill for '{prompt}': {result.reasoning}")
        return result

    async def refresh_state(self, focus_element: int = -1) -> BrowserState:
        return await self.browser_context.update_state(focus_element)

    async def remove_highlights(self) -> None:
        await self.browser_context.remove_highlights()
