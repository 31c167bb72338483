"""LLM-driven element selection.

The page state is rendered as a numbered element listing (optionally with
the highlighted screenshot) and the model answers with the index it picked:

    [0]<button>Sign in</button>
    [1]<input email;Email address/>

Indices refer to the highlight index space (``select_element``) or to the
element index space (``select_element_from_all_elements``) of the snapshot
the listing was rendered from.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...config.options import LLMSelectorConfig
from ...errors import SelectionError
from ..dom.views import DOMBaseNode, DOMElementNode, DOMTextNode, distinct_attribute_values

if TYPE_CHECKING:
    from ...adapters.browser_context import BrowserState

logger = logging.getLogger(__name__)


@runtime_checkable
class ChatModel(Protocol):
    """Anything that can answer a system prompt plus user content blocks."""

    async def invoke(self, system_prompt: str, content: list[dict[str, Any]]) -> str:
        """Return the model's text reply."""
        ...


@dataclass
class ElementSelectionResult:
    """Outcome of one selection; ``selected_element`` is None when nothing matched."""

    selected_element: DOMBaseNode | None
    selected_index: int | None
    confidence: float
    reasoning: str

    @classmethod
    def empty(cls, reasoning: str) -> ElementSelectionResult:
        return cls(selected_element=None, selected_index=None, confidence=0.0, reasoning=reasoning)


class SelectionResponse(BaseModel):
    """JSON reply expected from the model."""

    model_config = ConfigDict(populate_by_name=True)

    selected_index: int | None = Field(None, alias="selectedIndex")
    confidence: float | None = 0.0
    reasoning: str | None = ""


SYSTEM_PROMPT = """You are an AI assistant that helps select DOM elements from web pages based on user descriptions.

# Input Format
Elements are provided in this format:
[index]<type>text</type>
- index: Numeric identifier for interaction
- type: HTML element type (button, input, etc.)
- text: Element description
Example:
[33]<button>Submit Form</button>

- Only elements with numeric indexes in [] can be selected
- elements without [] provide only context

# Response Rules
1. RESPONSE FORMAT: You must ALWAYS respond with valid JSON in this exact format:
{
  "selectedIndex": number | null,
  "confidence": number (0-1),
  "reasoning": "Brief explanation of your selection"
}

2. ELEMENT SELECTION:
- Only select elements that are visible and interactive
- Consider the element's text content, attributes, and context
- If multiple elements could match, choose the most specific one
- If no element matches the description, return null
- Consider the element's position and hierarchy in the DOM

3. VISUAL CONTEXT:
- When an image is provided, use it to understand the page layout
- Bounding boxes with labels on their top right corner correspond to element indexes

Your responses must be always JSON with the specified format."""

ALL_ELEMENTS_NOTE = """
The listing below covers ALL indexed elements, including text runs.
Indexes are element indexes; text runs are shown as [index]"text"."""

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if "```" in cleaned:
        match = _CODE_FENCE_RE.search(cleaned)
        if match:
            cleaned = match.group(1)
    return cleaned


def parse_llm_response(
    text: str, lookup: Mapping[int, DOMBaseNode]
) -> ElementSelectionResult:
    """Turn a raw model reply into a selection against ``lookup``.

    Malformed replies, a null index, and indices missing from ``lookup`` all
    produce an empty result; this function does not raise.
    """
    try:
        response = SelectionResponse.model_validate_json(_strip_code_fence(text))
    except ValidationError as e:
        logger.warning(f"Failed to parse LLM response: {e}")
        return ElementSelectionResult.empty(f"Failed to parse LLM response: {e}")

    if response.selected_index is None:
        return ElementSelectionResult.empty(response.reasoning or "No element selected")

    selected = lookup.get(response.selected_index)
    if selected is None:
        return ElementSelectionResult.empty(
            f"Element with index {response.selected_index} not found in the current snapshot"
        )

    return ElementSelectionResult(
        selected_element=selected,
        selected_index=response.selected_index,
        confidence=max(0.0, min(1.0, response.confidence or 0.0)),
        reasoning=response.reasoning or "",
    )


class LLMSelector:
    def __init__(self, llm: ChatModel, config: LLMSelectorConfig | None = None):
        self.llm = llm
        self.config = config or LLMSelectorConfig()

    async def select_element(self, prompt: str, state: BrowserState) -> ElementSelectionResult:
        """Pick one interactive element (highlight index space)."""
        listing = self.format_interactive_elements(state.selector_map)
        return await self._select(prompt, state, listing, state.selector_map, all_elements=False)

    async def select_element_from_all_elements(
        self, prompt: str, state: BrowserState
    ) -> ElementSelectionResult:
        """Pick any indexed element or text run (element index space)."""
        listing = self.format_all_elements(state.element_map)
        return await self._select(prompt, state, listing, state.element_map, all_elements=True)

    async def _select(
        self,
        prompt: str,
        state: BrowserState,
        listing: str,
        lookup: Mapping[int, DOMBaseNode],
        all_elements: bool,
    ) -> ElementSelectionResult:
        system_prompt = SYSTEM_PROMPT + (ALL_ELEMENTS_NOTE if all_elements else "")
        content = self.create_user_content(prompt, state, listing)

        last_result = ElementSelectionResult.empty("Failed to select element after all attempts")
        last_error: Exception | None = None
        failures = 0
        for attempt in range(1, self.config.max_retries + 1):
            try:
                reply = await self.llm.invoke(system_prompt, content)
            except Exception as e:
                failures += 1
                last_error = e
                logger.warning(f"LLM selection attempt {attempt} failed: {e}")
                continue

            result = parse_llm_response(reply, lookup)
            if result.selected_element is not None:
                logger.info(
                    f"Selected index {result.selected_index} "
                    f"(confidence {result.confidence:.2f}) for '{prompt}'"
                )
                return result
            last_result = result

        if failures == self.config.max_retries:
            raise SelectionError(
                f"Failed to select element after {self.config.max_retries} attempts: {last_error}"
            ) from last_error
        return last_result

    def create_user_content(
        self, prompt: str, state: BrowserState, listing: str
    ) -> list[dict[str, Any]]:
        if listing:
            if state.pixels_above > 0:
                framed = f"... {state.pixels_above} pixels above - scroll to see more ...\n{listing}"
            else:
                framed = f"[Start of page]\n{listing}"
            if state.pixels_below > 0:
                framed += f"\n... {state.pixels_below} pixels below - scroll to see more ..."
            else:
                framed += "\n[End of page]"
        else:
            framed = "No interactive elements found"

        description = f"""
[Current state starts here]
Current url: {state.url}
Page title: {state.title}
Elements of the current page:
{framed}

User Prompt: {prompt}
"""
        content: list[dict[str, Any]] = [{"type": "text", "text": description}]
        if self.config.use_vision and state.screenshot:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": "image/png",
                        "data": state.screenshot,
                    },
                }
            )
        return content

    def _attributes_str(self, node: DOMElementNode, text: str) -> str:
        values = distinct_attribute_values(node, self.config.include_attributes, exclude=text)
        return ";".join(values)

    def _element_line(self, index: int, node: DOMElementNode) -> str:
        text = node.get_all_text_till_next_clickable_element()
        attributes_str = self._attributes_str(node, text)
        line = f"[{index}]<{node.tag_name}"
        if attributes_str:
            line += f" {attributes_str}"
        if text:
            line += f">{text}</{node.tag_name}>"
        else:
            line += "/>"
        return line

    def format_interactive_elements(self, selector_map: Mapping[int, DOMElementNode]) -> str:
        return "\n".join(
            self._element_line(index, selector_map[index]) for index in sorted(selector_map)
        )

    def format_all_elements(self, element_map: Mapping[int, DOMBaseNode]) -> str:
        lines: list[str] = []
        for index in sorted(element_map):
            node = element_map[index]
            if isinstance(node, DOMElementNode):
                lines.append(self._element_line(index, node))
            elif isinstance(node, DOMTextNode):
                lines.append(f'[{index}]"{node.text}"')
        return "\n".join(lines)
