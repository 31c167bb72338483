"""Snapshot live pages into indexed element trees and find those elements again."""

from __future__ import annotations

from .adapters.anthropic import AnthropicChatModel
from .adapters.browser_context import ActionResult, BrowserContext, BrowserState
from .config import BrowserContextConfig, DOMSelectorConfig, LLMSelectorConfig, configure_logging
from .core.dom import DOMElementNode, DOMState, DOMTextNode, DomService
from .core.locate.relocator import ElementLocator
from .core.selection.llm_selector import ChatModel, ElementSelectionResult, LLMSelector
from .core.selectors.synthesizer import enhanced_css_selector_for_element
from .errors import (
    ActionError,
    ElementNotFoundError,
    PinpointError,
    SelectionError,
    SnapshotError,
)
from .selector import DOMSelector

__version__ = "0.1.0"

__all__ = [
    "ActionError",
    "ActionResult",
    "AnthropicChatModel",
    "BrowserContext",
    "BrowserContextConfig",
    "BrowserState",
    "ChatModel",
    "DOMElementNode",
    "DOMSelector",
    "DOMSelectorConfig",
    "DOMState",
    "DOMTextNode",
    "DomService",
    "ElementLocator",
    "ElementNotFoundError",
    "ElementSelectionResult",
    "LLMSelector",
    "LLMSelectorConfig",
    "PinpointError",
    "SelectionError",
    "SnapshotError",
    "configure_logging",
    "enhanced_css_selector_for_element",
]
