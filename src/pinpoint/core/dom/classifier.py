"""Visibility, interactivity and text predicates.

Every function works on the raw element record returned by the capture
script (see ``capture.py``) and never raises: a record without style or
geometry, which the capture emits when reading the live element failed,
simply classifies as not visible.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .views import ViewportInfo

INTERACTIVE_TAGS = frozenset(
    {
        "a",
        "button",
        "input",
        "select",
        "textarea",
        "option",
        "optgroup",
        "fieldset",
        "legend",
        "details",
        "summary",
    }
)

CLICK_HANDLER_ATTRIBUTES = (
    "onclick",
    "onmousedown",
    "onmouseup",
    "onmousemove",
    "onmouseover",
    "onmouseout",
)

INTERACTIVE_ROLES = frozenset({"button", "link", "menuitem", "tab", "option"})


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def is_element_visible(
    record: Mapping[str, Any], viewport: ViewportInfo, viewport_expansion: int = 0
) -> bool:
    """Check computed style and whether the box meets the inflated viewport.

    Args:
        record: Raw element record with ``style`` and ``rect`` entries
        viewport: Viewport of the frame the element belongs to
        viewport_expansion: Pixels added to every side of the viewport

    Returns:
        True when the element is displayed, not hidden, has a positive area
        and intersects the inflated viewport rectangle
    """
    style = record.get("style")
    rect = record.get("rect")
    if not isinstance(style, Mapping) or not isinstance(rect, Mapping):
        return False

    if style.get("display") == "none" or style.get("visibility") == "hidden":
        return False

    left = _number(rect.get("x"))
    top = _number(rect.get("y"))
    width = _number(rect.get("width"))
    height = _number(rect.get("height"))
    if width <= 0 or height <= 0:
        return False

    margin = max(0, int(viewport_expansion))
    return (
        top < viewport.height + margin
        and top + height > -margin
        and left < viewport.width + margin
        and left + width > -margin
    )


def is_element_in_viewport(record: Mapping[str, Any], viewport: ViewportInfo) -> bool:
    return is_element_visible(record, viewport, viewport_expansion=0)


def is_element_interactive(tag_name: str, attributes: Mapping[str, str]) -> bool:
    if tag_name.lower() in INTERACTIVE_TAGS:
        return True

    if any(attr in attributes for attr in CLICK_HANDLER_ATTRIBUTES):
        return True

    role = attributes.get("role")
    if role and role in INTERACTIVE_ROLES:
        return True

    tab_index = attributes.get("tabindex")
    return tab_index is not None and tab_index != "-1"


def extract_direct_text(record: Mapping[str, Any]) -> str:
    """Join the element's own text runs (not its descendants')."""
    children = record.get("children") or []
    parts = [
        str(child.get("text", "")).strip()
        for child in children
        if isinstance(child, Mapping) and child.get("type") == "text"
    ]
    return " ".join(part for part in parts if part)
