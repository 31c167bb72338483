"""Tests for the DOMSelector facade."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pinpoint.adapters.browser_context import ActionResult
from pinpoint.core.dom.views import DOMElementNode, DOMTextNode, DOMTree
from pinpoint.core.selection.llm_selector import ElementSelectionResult
from pinpoint.errors import ActionError, ElementNotFoundError
from pinpoint.selector import DOMSelector


def _nodes():
    tree = DOMTree()
    body = tree.add(DOMElementNode(is_visible=True, tag_name="body"))
    button = tree.add(
        DOMElementNode(is_visible=True, tag_name="button", is_interactive=True, highlight_index=0),
        body,
    )
    label = tree.add(DOMTextNode(is_visible=True, text="Go"), button)
    return button, label


@pytest.fixture
def selector():
    dom_selector = DOMSelector(MagicMock(), AsyncMock())
    button, label = _nodes()
    context = MagicMock()
    context.get_selector_map = AsyncMock(return_value={0: button})
    context.get_element_map = AsyncMock(return_value={0: button, 1: label})
    context.get_dom_element_by_index = AsyncMock(side_effect=lambda i: {0: button}.get(i))
    context.get_all_element_by_index = AsyncMock(side_effect=lambda i: {0: button, 1: label}.get(i))
    context.click_element_node = AsyncMock(return_value=ActionResult(ok=True, index=0))
    context.input_text_element_node = AsyncMock(return_value=ActionResult(ok=True, index=0))
    context.get_state = AsyncMock(return_value=MagicMock())
    context.update_state = AsyncMock(return_value=MagicMock())
    context.remove_highlights = AsyncMock()
    dom_selector.browser_context = context
    dom_selector.llm_selector = MagicMock()
    return dom_selector, button, label


class TestLookups:
    @pytest.mark.asyncio
    async def test_element_listings(self, selector):
        dom_selector, button, label = selector

        assert await dom_selector.get_interactive_elements() == [button]
        assert await dom_selector.get_all_elements() == [button, label]
        assert await dom_selector.get_non_interactive_elements() == [label]
        assert await dom_selector.get_element_by_index(0) is button
        assert await dom_selector.get_element_by_element_index(1) is label
        assert (await dom_selector.get_element_map())[1] is label


class TestActions:
    """Test index-based actions and their errors."""

    @pytest.mark.asyncio
    async def test_click_by_index(self, selector):
        dom_selector, button, _label = selector

        result = await dom_selector.click_element_by_index(0)

        assert result.ok is True
        dom_selector.browser_context.click_element_node.assert_awaited_once_with(button)

    @pytest.mark.asyncio
    async def test_unknown_index_raises(self, selector):
        dom_selector, *_rest = selector

        with pytest.raises(ElementNotFoundError) as exc:
            await dom_selector.click_element_by_index(9)

        assert exc.value.index == 9

    @pytest.mark.asyncio
    async def test_failed_action_raises_action_error(self, selector):
        dom_selector, *_rest = selector
        dom_selector.browser_context.input_text_element_node.return_value = ActionResult(
            ok=False, index=0, error="Element not found"
        )

        with pytest.raises(ActionError) as exc:
            await dom_selector.input_text_to_element_by_index(0, "hi")

        assert exc.value.index == 0
        assert exc.value.cause == "Element not found"


class TestSelectAndAct:
    @pytest.mark.asyncio
    async def test_select_and_click(self, selector):
        dom_selector, button, _label = selector
        dom_selector.llm_selector.select_element = AsyncMock(
            return_value=ElementSelectionResult(button, 0, 0.8, "the only button")
        )

        result = await dom_selector.select_and_click("press go")

        assert result.selected_index == 0
        dom_selector.browser_context.click_element_node.assert_awaited_once_with(button)

    @pytest.mark.asyncio
    async def test_nothing_selected_means_no_action(self, selector):
        dom_selector, *_rest = selector
        dom_selector.llm_selector.select_element = AsyncMock(
            return_value=ElementSelectionResult.empty("no match")
        )

        result = await dom_selector.select_and_input_text("search box", "shoes")

        assert result.selected_element is None
        dom_selector.browser_context.input_text_element_node.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refresh_and_remove_highlights(self, selector):
        dom_selector, *_rest = selector

        await dom_selector.refresh_state(focus_element=3)
        await dom_selector.remove_highlights()

        dom_selector.browser_context.update_state.assert_awaited_once_with(3)
        dom_selector.browser_context.remove_highlights.assert_awaited_once()
