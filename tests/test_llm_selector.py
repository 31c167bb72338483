"""Tests for LLM-based element selection.

Tests cover:
- Response parsing (code fences, clamping, unknown indices)
- Retry behaviour and SelectionError
- Prompt content (listing framing, vision block)
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from pinpoint.adapters.browser_context import BrowserState
from pinpoint.config.options import LLMSelectorConfig
from pinpoint.core.dom.views import DOMElementNode, DOMTextNode, DOMTree
from pinpoint.core.selection.llm_selector import (
    ChatModel,
    LLMSelector,
    parse_llm_response,
)
from pinpoint.errors import SelectionError


def _state(screenshot="", pixels_above=0, pixels_below=0) -> BrowserState:
    tree = DOMTree()
    body = tree.add(DOMElementNode(is_visible=True, tag_name="body", xpath="/html/body"))
    heading = tree.add(DOMElementNode(is_visible=True, tag_name="h1", xpath="/html/body/h1"), body)
    tree.add(DOMTextNode(is_visible=True, text="Welcome"), heading)
    button = tree.add(
        DOMElementNode(
            is_visible=True,
            tag_name="button",
            xpath="/html/body/button",
            attributes={"id": "btn1", "title": "Submit"},
            is_interactive=True,
            highlight_index=0,
            element_index=0,
        ),
        body,
    )
    label = tree.add(DOMTextNode(is_visible=True, text="Send"), button)
    label.element_index = 1
    field = tree.add(
        DOMElementNode(
            is_visible=True,
            tag_name="input",
            xpath="/html/body/input",
            attributes={"type": "text", "placeholder": "Enter text"},
            is_interactive=True,
            highlight_index=1,
            element_index=2,
        ),
        body,
    )
    return BrowserState(
        element_tree=body,
        selector_map={0: button, 1: field},
        element_map={0: button, 1: label, 2: field},
        url="https://example.com",
        title="Test Page",
        screenshot=screenshot,
        pixels_above=pixels_above,
        pixels_below=pixels_below,
    )


def _reply(index, confidence=0.9, reasoning="matches"):
    return json.dumps({"selectedIndex": index, "confidence": confidence, "reasoning": reasoning})


def _llm(*replies):
    llm = AsyncMock()
    llm.invoke = AsyncMock(side_effect=list(replies))
    return llm


class TestParseResponse:
    """Test parse_llm_response."""

    def test_plain_json(self):
        state = _state()

        result = parse_llm_response(_reply(1), state.selector_map)

        assert result.selected_index == 1
        assert result.selected_element is state.selector_map[1]
        assert result.confidence == 0.9
        assert result.reasoning == "matches"

    def test_code_fence(self):
        state = _state()
        text = f"Here you go:\n```json\n{_reply(0)}\n```"

        result = parse_llm_response(text, state.selector_map)

        assert result.selected_index == 0

    @pytest.mark.parametrize("confidence,expected", [(1.7, 1.0), (-0.2, 0.0), (None, 0.0)])
    def test_confidence_is_clamped(self, confidence, expected):
        result = parse_llm_response(_reply(0, confidence=confidence), _state().selector_map)

        assert result.confidence == expected

    def test_null_index(self):
        result = parse_llm_response(_reply(None, reasoning="nothing fits"), _state().selector_map)

        assert result.selected_element is None
        assert result.selected_index is None
        assert result.reasoning == "nothing fits"

    def test_unknown_index(self):
        result = parse_llm_response(_reply(42), _state().selector_map)

        assert result.selected_element is None
        assert "42" in result.reasoning

    def test_garbage(self):
        result = parse_llm_response("I think it is the button", _state().selector_map)

        assert result.selected_element is None
        assert result.confidence == 0.0
        assert result.reasoning.startswith("Failed to parse LLM response")


class TestSelectElement:
    """Test LLMSelector.select_element."""

    @pytest.mark.asyncio
    async def test_selects_interactive_element(self):
        llm = _llm(_reply(1))
        selector = LLMSelector(llm, LLMSelectorConfig(use_vision=False, max_retries=3))
        state = _state()

        result = await selector.select_element("type into the text box", state)

        assert result.selected_element is state.selector_map[1]
        assert llm.invoke.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_after_unusable_reply(self):
        llm = _llm("not json", _reply(99), _reply(0))
        selector = LLMSelector(llm, LLMSelectorConfig(max_retries=3))

        result = await selector.select_element("submit", _state())

        assert result.selected_index == 0
        assert llm.invoke.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_with_empty_result(self):
        llm = _llm(_reply(None), _reply(None))
        selector = LLMSelector(llm, LLMSelectorConfig(max_retries=2))

        result = await selector.select_element("logout", _state())

        assert result.selected_element is None
        assert llm.invoke.await_count == 2

    @pytest.mark.asyncio
    async def test_every_attempt_raising_is_an_error(self):
        llm = _llm(RuntimeError("overloaded"), RuntimeError("overloaded"))
        selector = LLMSelector(llm, LLMSelectorConfig(max_retries=2))

        with pytest.raises(SelectionError) as exc:
            await selector.select_element("submit", _state())

        assert "overloaded" in str(exc.value)

    @pytest.mark.asyncio
    async def test_one_failed_call_is_not_fatal(self):
        llm = _llm(RuntimeError("timeout"), "garbage")
        selector = LLMSelector(llm, LLMSelectorConfig(max_retries=2))

        result = await selector.select_element("submit", _state())

        assert result.selected_element is None


class TestSelectFromAllElements:
    @pytest.mark.asyncio
    async def test_can_select_text_run(self):
        llm = _llm(_reply(1))
        selector = LLMSelector(llm, LLMSelectorConfig(use_vision=False))
        state = _state()

        result = await selector.select_element_from_all_elements("the send label", state)

        assert isinstance(result.selected_element, DOMTextNode)
        system_prompt, content = llm.invoke.await_args.args
        assert "ALL indexed elements" in system_prompt
        assert '[1]"Send"' in content[0]["text"]


class TestPromptContent:
    """Test the user content sent to the model."""

    def test_listing_format(self):
        selector = LLMSelector(_llm(), LLMSelectorConfig(include_attributes=["title", "placeholder"]))

        listing = selector.format_interactive_elements(_state().selector_map)

        assert listing.splitlines() == [
            "[0]<button Submit>Send</button>",
            "[1]<input>Enter text</input>",
        ]

    def test_page_framing(self):
        selector = LLMSelector(_llm(), LLMSelectorConfig(use_vision=False))
        state = _state(pixels_above=120)

        content = selector.create_user_content("submit", state, "[0]<button/>")

        text = content[0]["text"]
        assert "... 120 pixels above - scroll to see more ..." in text
        assert "[End of page]" in text
        assert "Current url: https://example.com" in text
        assert "User Prompt: submit" in text
        assert len(content) == 1

    def test_start_of_page_and_more_below(self):
        selector = LLMSelector(_llm(), LLMSelectorConfig(use_vision=False))

        text = selector.create_user_content("x", _state(pixels_below=40), "[0]<a/>")[0]["text"]

        assert "[Start of page]" in text
        assert "... 40 pixels below - scroll to see more ..." in text

    def test_empty_listing(self):
        selector = LLMSelector(_llm(), LLMSelectorConfig(use_vision=False))

        text = selector.create_user_content("x", _state(), "")[0]["text"]

        assert "No interactive elements found" in text

    def test_screenshot_block_when_vision_enabled(self):
        selector = LLMSelector(_llm(), LLMSelectorConfig(use_vision=True))

        content = selector.create_user_content("x", _state(screenshot="aGVsbG8="), "[0]<a/>")

        assert content[1] == {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/png", "data": "aGVsbG8="},
        }

    def test_chat_model_protocol(self):
        class EchoModel:
            async def invoke(self, system_prompt, content):
                return "{}"

        assert isinstance(EchoModel(), ChatModel)
