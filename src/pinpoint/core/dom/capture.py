"""Scripts evaluated inside a page or frame.

``CAPTURE_DOM_JS`` reads the live document into plain JSON records; all
classification, path building and indexing happens in Python on that payload.
``DRAW_HIGHLIGHTS_JS`` and ``REMOVE_HIGHLIGHTS_JS`` manage the overlay
container, the only state the snapshot leaves behind in the page.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Frame, Page

logger = logging.getLogger(__name__)

HIGHLIGHT_CONTAINER_ID = "playwright-highlight-container"
FRAME_TAGS = frozenset({"iframe", "frame"})
FRAME_QUERY = "iframe, frame"

# Element records: {type, tag, attributes, style, rect, shadowRoot, children}
# plus frameIndex (position in FRAME_ELEMENTS_JS's list) on frames.
# Text records: {type, text}
CAPTURE_DOM_JS = """
() => {
  const existing = document.getElementById('%(container)s');
  if (existing) existing.remove();

  const viewport = {
    width: window.innerWidth,
    height: window.innerHeight,
    scrollX: window.scrollX,
    scrollY: window.scrollY,
  };

  const frames = Array.from(document.querySelectorAll('%(frames)s'));

  function describe(el) {
    const record = {
      type: 'element',
      tag: (el.tagName || '').toLowerCase(),
      attributes: {},
      style: null,
      rect: null,
      shadowRoot: false,
      children: [],
    };
    if (record.tag === 'iframe' || record.tag === 'frame') {
      record.frameIndex = frames.indexOf(el);
    }
    try {
      for (const attr of Array.from(el.attributes || [])) {
        record.attributes[attr.name] = attr.value;
      }
      record.shadowRoot = !!el.shadowRoot;
      const style = window.getComputedStyle(el);
      record.style = { display: style.display, visibility: style.visibility };
      const r = el.getBoundingClientRect();
      record.rect = { x: r.left, y: r.top, width: r.width, height: r.height };
    } catch (e) {
      record.error = String(e);
    }
    for (const child of Array.from(el.childNodes || [])) {
      if (child.nodeType === Node.TEXT_NODE) {
        const text = (child.textContent || '').trim();
        if (text) record.children.push({ type: 'text', text });
      } else if (child.nodeType === Node.ELEMENT_NODE) {
        record.children.push(describe(child));
      }
    }
    return record;
  }

  if (!document.body) return null;
  return {
    viewport,
    htmlId: (document.documentElement && document.documentElement.id) || '',
    root: describe(document.body),
  };
}
""" % {"container": HIGHLIGHT_CONTAINER_ID, "frames": FRAME_QUERY}

DRAW_HIGHLIGHTS_JS = """
(highlights) => {
  let container = document.getElementById('%(container)s');
  if (!container) {
    container = document.createElement('div');
    container.id = '%(container)s';
    container.style.cssText = `
      position: fixed;
      top: 0;
      left: 0;
      width: 100%%;
      height: 100%%;
      pointer-events: none;
      z-index: 2147483647;
    `;
    document.body.appendChild(container);
  }
  for (const item of highlights) {
    const color = item.focused ? '#ff0000' : '#00ff00';
    const fill = item.focused ? 'rgba(255, 0, 0, 0.1)' : 'rgba(0, 255, 0, 0.1)';
    const box = document.createElement('div');
    box.className = 'playwright-highlight';
    box.style.cssText = `
      position: absolute;
      left: ${item.x}px;
      top: ${item.y}px;
      width: ${item.width}px;
      height: ${item.height}px;
      border: 2px solid ${color};
      background-color: ${fill};
      pointer-events: none;
      z-index: 2147483646;
      box-sizing: border-box;
    `;
    const label = document.createElement('div');
    label.textContent = String(item.index);
    label.style.cssText = `
      position: absolute;
      top: -20px;
      left: 0;
      background-color: ${color};
      color: white;
      padding: 2px 6px;
      font-size: 12px;
      font-weight: bold;
      border-radius: 3px;
      white-space: nowrap;
    `;
    box.appendChild(label);
    container.appendChild(box);
  }
  return highlights.length;
}
""" % {"container": HIGHLIGHT_CONTAINER_ID}

FRAME_ELEMENTS_JS = "() => Array.from(document.querySelectorAll('%s'))" % FRAME_QUERY

REMOVE_HIGHLIGHTS_JS = """
() => {
  const container = document.getElementById('%(container)s');
  if (container) container.remove();
}
""" % {"container": HIGHLIGHT_CONTAINER_ID}


async def capture_frame(frame: Page | Frame) -> dict[str, Any] | None:
    """Evaluate the capture script in ``frame``.

    Returns:
        ``{"viewport", "htmlId", "root"}`` or None when the document has no body
    """
    payload = await frame.evaluate(CAPTURE_DOM_JS)
    if not payload or not isinstance(payload, dict) or not payload.get("root"):
        return None
    return payload


async def draw_highlights(frame: Page | Frame, highlights: list[dict[str, Any]]) -> None:
    if not highlights:
        return
    await frame.evaluate(DRAW_HIGHLIGHTS_JS, highlights)


async def remove_highlights(frame: Page | Frame) -> None:
    await frame.evaluate(REMOVE_HIGHLIGHTS_JS)


async def frame_elements(frame: Page | Frame) -> list[ElementHandle | None]:
    """Handles for the document's iframe/frame elements, in ``frameIndex`` order.

    The list comes from the same ``querySelectorAll`` the capture script uses;
    Playwright selectors pierce open shadow roots and would number differently.
    """
    array = await frame.evaluate_handle(FRAME_ELEMENTS_JS)
    try:
        properties = await array.get_properties()
    finally:
        await array.dispose()
    keys = sorted((k for k in properties if k.isdigit()), key=int)
    return [properties[k].as_element() for k in keys]
