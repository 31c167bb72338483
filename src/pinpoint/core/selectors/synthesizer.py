"""CSS selector synthesis for snapshot nodes.

The selector combines three sources, most structural first:

1. the structural path converted to CSS (``html > body > div:nth-of-type(2)``);
2. class tokens that are plain CSS identifiers (``.btn.btn--primary``);
3. allowlisted attributes, each rendered according to ``SAFE_ATTRIBUTES``.

Synthesis never raises. If anything about the node is unusable the caller
still gets ``tag[highlight_index='N']``, which is syntactically valid even if
it matches nothing.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from ..dom.paths import css_from_path, css_identifier, css_string
from ..dom.views import DOMElementNode

logger = logging.getLogger(__name__)


class AttributePolicy(str, Enum):
    """How an allowlisted attribute is turned into a selector filter."""

    VALUE = "value"  # [attr="v"], or [attr*="v"] when v holds unsafe characters
    PRESENCE = "presence"  # [attr] regardless of the value


SAFE_ATTRIBUTES: dict[str, AttributePolicy] = {
    "id": AttributePolicy.VALUE,
    "name": AttributePolicy.VALUE,
    "type": AttributePolicy.VALUE,
    "placeholder": AttributePolicy.VALUE,
    "aria-label": AttributePolicy.VALUE,
    "aria-labelledby": AttributePolicy.VALUE,
    "aria-describedby": AttributePolicy.VALUE,
    "role": AttributePolicy.VALUE,
    "for": AttributePolicy.VALUE,
    "autocomplete": AttributePolicy.VALUE,
    "required": AttributePolicy.PRESENCE,
    "readonly": AttributePolicy.PRESENCE,
    "alt": AttributePolicy.VALUE,
    "title": AttributePolicy.VALUE,
    "src": AttributePolicy.VALUE,
    "href": AttributePolicy.VALUE,
    "target": AttributePolicy.VALUE,
}

# Test hooks; stable within one build but often regenerated between builds
DYNAMIC_ATTRIBUTES: dict[str, AttributePolicy] = {
    "data-id": AttributePolicy.VALUE,
    "data-qa": AttributePolicy.VALUE,
    "data-cy": AttributePolicy.VALUE,
    "data-testid": AttributePolicy.VALUE,
}

VALID_CLASS_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_-]*$")
UNSAFE_VALUE_CHARS = re.compile(r"[\"'<>`\n\r\t]")
_WHITESPACE = re.compile(r"\s+")


def attribute_policies(include_dynamic_attributes: bool = True) -> dict[str, AttributePolicy]:
    if not include_dynamic_attributes:
        return dict(SAFE_ATTRIBUTES)
    return {**SAFE_ATTRIBUTES, **DYNAMIC_ATTRIBUTES}


def escape_attribute_name(name: str) -> str:
    return name.replace(":", "\\:")


def escape_attribute_value(value: str) -> str:
    return css_string(value)


def attribute_filter(name: str, value: str, policy: AttributePolicy) -> str:
    """Render one ``[attr...]`` filter for an allowlisted attribute."""
    safe_name = escape_attribute_name(name)
    if policy is AttributePolicy.PRESENCE or value == "":
        return f"[{safe_name}]"
    if UNSAFE_VALUE_CHARS.search(value):
        collapsed = _WHITESPACE.sub(" ", value).strip()
        return f'[{safe_name}*="{escape_attribute_value(collapsed)}"]'
    return f'[{safe_name}="{escape_attribute_value(value)}"]'


def class_filters(class_value: str) -> str:
    """Dot-joined class tokens, skipping anything that is not a plain identifier."""
    return "".join(
        f".{token}" for token in class_value.split() if VALID_CLASS_NAME.match(token)
    )


def fallback_selector(node: DOMElementNode) -> str:
    tag_name = css_identifier(node.tag_name) if node.tag_name else "*"
    return f"{tag_name}[highlight_index='{node.highlight_index}']"


def enhanced_css_selector_for_element(
    node: DOMElementNode, include_dynamic_attributes: bool = True
) -> str:
    """Build a CSS selector that should match ``node`` in the live document.

    Args:
        node: Element captured in a snapshot
        include_dynamic_attributes: Also use data-id/data-qa/data-cy/data-testid

    Returns:
        A selector string; ``fallback_selector(node)`` when the node cannot be
        described
    """
    try:
        css_selector = css_from_path(node.xpath) or css_identifier(node.tag_name)

        class_value = node.attributes.get("class")
        if class_value:
            css_selector += class_filters(class_value)

        policies = attribute_policies(include_dynamic_attributes)
        for name, value in node.attributes.items():
            if name == "class" or not name.strip():
                continue
            policy = policies.get(name)
            if policy is None:
                continue
            css_selector += attribute_filter(name, str(value), policy)

        if not css_selector:
            return fallback_selector(node)
        return css_selector
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Falling back to index selector for <{node.tag_name}>: {e}")
        return fallback_selector(node)
