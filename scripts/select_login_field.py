#!/usr/bin/env python3
"""Snapshot a login page, print its interactive elements and pick one with Claude.

Usage:
    python scripts/select_login_field.py [URL] ["element description"]
"""

from __future__ import annotations

import asyncio
import os
import sys

from pinpoint import AnthropicChatModel, DOMSelector, DOMSelectorConfig, configure_logging
from pinpoint.adapters.anthropic import has_api_key
from pinpoint.adapters.playwright import open_page

URL = os.getenv("PINPOINT_DEMO_URL", "https://the-internet.herokuapp.com/login")
PROMPT = "the username input field"


async def main(url: str, prompt: str) -> int:
    configure_logging()
    async with open_page() as page:
        await page.goto(url)
        await page.wait_for_load_state("networkidle")

        selector = DOMSelector(page, AnthropicChatModel(), DOMSelectorConfig())
        state = await selector.get_browser_state()
        print(f"\n=== {state.title} ({state.url}) ===")
        print(f"{len(state.selector_map)} interactive, {len(state.element_map)} indexed")
        print(state.element_tree.clickable_elements_to_string(["type", "name", "placeholder"]))

        if not has_api_key():
            print("\nANTHROPIC_API_KEY not set, skipping LLM selection", file=sys.stderr)
            return 0

        result = await selector.select_element(prompt)
        if result.selected_element is None:
            print(f"\nNo element found: {result.reasoning}")
            return 1
        print(f"\nSelected [{result.selected_index}] {result.selected_element}")
        print(f"confidence {result.confidence:.2f}: {result.reasoning}")
        return 0


if __name__ == "__main__":
    args = sys.argv[1:]
    sys.exit(asyncio.run(main(args[0] if args else URL, args[1] if len(args) > 1 else PROMPT)))
