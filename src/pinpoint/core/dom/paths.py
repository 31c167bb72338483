"""Structural paths for snapshot nodes and their CSS counterparts.

A structural path is an absolute XPath-like string such as
``/html/body/div[2]/button`` or, when an element (or one of its ancestors)
carries an id, an id-anchored path such as ``//*[@id="login"]/input[2]``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class PathStep:
    """One element on the way from the document root to a node.

    Attributes:
        tag: Lowercase tag name
        element_id: Value of the ``id`` attribute ("" when absent)
        ordinal: 1-based position among siblings with the same tag
        same_tag_count: Number of siblings (self included) with the same tag
    """

    tag: str
    element_id: str = ""
    ordinal: int = 1
    same_tag_count: int = 1


def _id_anchor(element_id: str) -> str:
    return f'//*[@id="{element_id}"]'


def _segment(step: PathStep) -> str:
    if step.same_tag_count > 1:
        return f"{step.tag}[{step.ordinal}]"
    return step.tag


def structural_path(lineage: Sequence[PathStep]) -> str:
    """Build the path of the last step in ``lineage``.

    Walks upward from the leaf; the first step carrying an id becomes the
    anchor and ends the walk.

    Args:
        lineage: Steps from the document element (``html``) down to the node

    Returns:
        Absolute structural path
    """
    segments: list[str] = []
    for step in reversed(lineage):
        if step.element_id:
            segments.append(_id_anchor(step.element_id))
            segments.reverse()
            return "/".join(segments)
        segments.append(_segment(step))

    segments.reverse()
    return "/" + "/".join(segments)


_ID_ANCHOR_RE = re.compile(r"""^//\*\[@id=(["'])(.*?)\1\]""", re.DOTALL)
_SEGMENT_RE = re.compile(r"^(?P<tag>[^\[\]]+)(?P<predicate>\[.*\])?$")
_ORDINAL_RE = re.compile(r"^\[(\d+)\]$")


def _is_control(char: str) -> bool:
    return "\x01" <= char <= "\x1f" or char == "\x7f"


def css_string(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted CSS string."""
    out: list[str] = []
    for char in value:
        if char == "\0":
            out.append("\ufffd")
        elif _is_control(char):
            # Newline becomes "\a " and so on; the space ends the hex escape
            out.append(f"\\{ord(char):x} ")
        elif char in '"\\':
            out.append("\\" + char)
        else:
            out.append(char)
    return "".join(out)


def css_identifier(value: str) -> str:
    """Escape ``value`` as a CSS identifier, so ``o:p`` becomes ``o\\:p``."""
    out: list[str] = []
    for position, char in enumerate(value):
        leading_digit = char in "0123456789" and (
            position == 0 or (position == 1 and value[0] == "-")
        )
        if char == "\0":
            out.append("\ufffd")
        elif _is_control(char) or leading_digit:
            out.append(f"\\{ord(char):x} ")
        elif value == "-" or (char.isascii() and not (char.isalnum() or char in "-_")):
            out.append("\\" + char)
        else:
            out.append(char)
    return "".join(out)


def _css_segment(segment: str) -> str:
    match = _SEGMENT_RE.match(segment)
    if not match:
        return css_identifier(segment)
    tag = css_identifier(match.group("tag"))
    predicate = match.group("predicate")
    if predicate:
        ordinal = _ORDINAL_RE.match(predicate)
        if ordinal:
            return f"{tag}:nth-of-type({ordinal.group(1)})"
        # Non-ordinal predicates have no CSS equivalent here; drop them
    return tag


def css_from_path(path: str) -> str:
    """Convert a structural path into a child-combinator CSS selector.

    ``/html/body/div[2]/a`` becomes ``html > body > div:nth-of-type(2) > a``
    and ``//*[@id="x"]/span`` becomes ``[id="x"] > span``. Predicates other
    than plain ordinals are dropped, so the result is best-effort.
    """
    parts: list[str] = []
    rest = path

    anchor = _ID_ANCHOR_RE.match(path)
    if anchor:
        parts.append(f'[id="{css_string(anchor.group(2))}"]')
        rest = path[anchor.end() :]

    parts.extend(_css_segment(segment) for segment in rest.split("/") if segment)
    return " > ".join(parts)
