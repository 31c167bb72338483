"""End-to-end snapshot and relocation against a real Chromium.

Skipped when Chromium cannot be launched (e.g. browsers not installed).
"""

from __future__ import annotations

import html
from contextlib import AsyncExitStack

import pytest
from pinpoint.adapters.browser_context import BrowserContext
from pinpoint.adapters.playwright import open_page
from pinpoint.config.options import BrowserContextConfig
from pinpoint.core.dom.views import DOMElementNode

pytestmark = pytest.mark.integration

LOGIN_HTML = """
<html><body>
  <h1 id="t">Hello</h1>
  <p class="MsoNormal">Pasted from Word<o:p>&nbsp;note</o:p></p>
  <form id="login">
    <input name="email" placeholder='Your "work" email'>
    <input name="password" type="password">
    <button type="button" class="btn btn--primary 123invalid"
            onclick="document.title = 'clicked'">Go</button>
  </form>
  <div style="display:none"><button>Hidden</button></div>
</body></html>
"""

INNER = "<button id='pay'>Pay</button>"
MIDDLE = f'<iframe id="inner" srcdoc="{html.escape(INNER)}"></iframe>'
NESTED_HTML = f"""
<html><body>
  <a href="#top">Top</a>
  <iframe id="outer" srcdoc="{html.escape(MIDDLE)}"></iframe>
</body></html>
"""


async def _page_or_skip(stack: AsyncExitStack):
    try:
        return await stack.enter_async_context(open_page(headless=True))
    except Exception as e:
        pytest.skip(f"Chromium unavailable: {e}")


def _elements(node: DOMElementNode):
    yield node
    for child in node.children:
        if isinstance(child, DOMElementNode):
            yield from _elements(child)


def _config() -> BrowserContextConfig:
    return BrowserContextConfig(highlight_elements=True, viewport_expansion=0, wait_between_actions=0)


@pytest.mark.asyncio
async def test_snapshot_locate_and_act_on_static_page():
    async with AsyncExitStack() as stack:
        page = await _page_or_skip(stack)
        await page.set_content(LOGIN_HTML)
        context = BrowserContext(page, _config())

        state = await context.update_state()

        tags = [state.selector_map[i].tag_name for i in sorted(state.selector_map)]
        assert tags == ["input", "input", "button"]
        assert sorted(state.element_map) == list(range(len(state.element_map)))

        visible = [node for node in _elements(state.element_tree) if node.is_visible]
        assert {"h1", "o:p"} <= {node.tag_name for node in visible}
        for node in visible:
            handle = await context.get_locate_element(node)
            assert handle is not None, node.xpath

        email = state.selector_map[0]
        fill = await context.input_text_element_node(email, "a@b.c")
        assert fill.ok is True
        assert await page.input_value("input[name=email]") == "a@b.c"

        click = await context.click_element_node(state.selector_map[2])
        assert click.ok is True
        assert await page.title() == "clicked"


@pytest.mark.asyncio
async def test_rebuild_is_deterministic():
    async with AsyncExitStack() as stack:
        page = await _page_or_skip(stack)
        await page.set_content(LOGIN_HTML)
        context = BrowserContext(page, _config())

        first = await context.update_state()
        first_paths = {i: n.xpath for i, n in first.selector_map.items()}
        second = await context.update_state()

        assert {i: n.xpath for i, n in second.selector_map.items()} == first_paths
        assert sorted(second.element_map) == sorted(first.element_map)


@pytest.mark.asyncio
async def test_element_two_frames_deep_is_located():
    async with AsyncExitStack() as stack:
        page = await _page_or_skip(stack)
        await page.set_content(NESTED_HTML)
        await page.frame_locator("#outer").frame_locator("#inner").locator("#pay").wait_for()
        context = BrowserContext(page, _config())

        state = await context.update_state()

        pay = next(n for n in state.selector_map.values() if n.attributes.get("id") == "pay")
        assert pay.frame_depth == 2
        handle = await context.get_locate_element(pay)
        assert handle is not None
        assert (await handle.text_content()) == "Pay"
