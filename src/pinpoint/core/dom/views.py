"""DOM snapshot data model.

Nodes live in a ``DOMTree`` arena and refer to their parent by integer id.
``node.parent`` resolves that id through the arena, so ancestor walks (frame
detection, text aggregation) work without nodes owning each other upward.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field


@dataclass
class ViewportInfo:
    width: int
    height: int
    scroll_x: float = 0.0
    scroll_y: float = 0.0


@dataclass
class CoordinateSet:
    x: float
    y: float
    width: float
    height: float


@dataclass
class HashedDomElement:
    branch_path_hash: str
    attributes_hash: str
    xpath_hash: str


def _b64_prefix(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")[:16]


@dataclass(eq=False)
class DOMBaseNode:
    is_visible: bool
    node_id: int = field(default=-1, kw_only=True)
    parent_id: int | None = field(default=None, kw_only=True)
    tree: DOMTree | None = field(default=None, kw_only=True, repr=False)

    @property
    def parent(self) -> DOMElementNode | None:
        if self.parent_id is None or self.tree is None:
            return None
        return self.tree.get(self.parent_id)  # type: ignore[return-value]


@dataclass(eq=False)
class DOMTextNode(DOMBaseNode):
    text: str = ""
    element_index: int | None = field(default=None, kw_only=True)
    type: str = field(default="TEXT_NODE", init=False)

    def has_parent_with_highlight_index(self) -> bool:
        current = self.parent
        while current is not None:
            if current.highlight_index is not None:
                return True
            current = current.parent
        return False

    def is_parent_in_viewport(self) -> bool:
        parent = self.parent
        return parent.is_in_viewport if parent else False

    def is_parent_top_element(self) -> bool:
        parent = self.parent
        return parent.is_top_element if parent else False


@dataclass(eq=False)
class DOMElementNode(DOMBaseNode):
    """One element observed at snapshot time.

    ``xpath`` is the structural path computed once during the snapshot and
    ``attributes`` is a copy, not a live view of the element.
    """

    tag_name: str = ""
    xpath: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[DOMBaseNode] = field(default_factory=list)
    is_interactive: bool = False
    is_top_element: bool = False
    is_in_viewport: bool = False
    shadow_root: bool = False
    highlight_index: int | None = None
    element_index: int | None = None
    text: str = ""
    frame_depth: int = 0
    viewport_coordinates: CoordinateSet | None = None
    page_coordinates: CoordinateSet | None = None
    viewport_info: ViewportInfo | None = None

    def __str__(self) -> str:
        tag_str = f"<{self.tag_name}"
        for key, value in self.attributes.items():
            tag_str += f' {key}="{value}"'
        tag_str += ">"

        extras = []
        if self.is_interactive:
            extras.append("interactive")
        if self.is_top_element:
            extras.append("top")
        if self.shadow_root:
            extras.append("shadow-root")
        if self.highlight_index is not None:
            extras.append(f"highlight:{self.highlight_index}")
        if self.is_in_viewport:
            extras.append("in-viewport")

        if extras:
            tag_str += f" [{', '.join(extras)}]"
        return tag_str

    @property
    def hash(self) -> HashedDomElement:
        branch_path = "/".join(self._parent_branch_path())
        sorted_attrs = "&".join(f"{key}={self.attributes[key]}" for key in sorted(self.attributes))
        return HashedDomElement(
            branch_path_hash=_b64_prefix(branch_path),
            attributes_hash=_b64_prefix(sorted_attrs),
            xpath_hash=_b64_prefix(self.xpath),
        )

    def _parent_branch_path(self) -> list[str]:
        # Tag names from just below the root down to this node
        branch: list[str] = []
        current: DOMElementNode | None = self
        while current is not None and current.parent is not None:
            branch.append(current.tag_name)
            current = current.parent
        branch.reverse()
        return branch

    def ancestors(self) -> list[DOMElementNode]:
        """Ancestors of this node in root-to-node order (the node itself excluded)."""
        chain: list[DOMElementNode] = []
        current = self.parent
        while current is not None:
            chain.append(current)
            current = current.parent
        chain.reverse()
        return chain

    def get_all_text_till_next_clickable_element(self, max_depth: int = -1) -> str:
        text_parts: list[str] = []

        def collect_text(node: DOMBaseNode, current_depth: int) -> None:
            if max_depth != -1 and current_depth > max_depth:
                return
            # Another highlighted element owns its own text
            if (
                isinstance(node, DOMElementNode)
                and node is not self
                and node.highlight_index is not None
            ):
                return
            if isinstance(node, DOMTextNode):
                if node.is_visible:
                    text_parts.append(node.text)
            elif isinstance(node, DOMElementNode):
                for child in node.children:
                    collect_text(child, current_depth + 1)

        collect_text(self, 0)

        if not text_parts:
            attribute_text = self._text_from_attributes()
            if attribute_text:
                text_parts.append(attribute_text)

        return " ".join(text_parts).strip()

    def _text_from_attributes(self) -> str:
        values = [
            value.strip()
            for key, value in self.attributes.items()
            if key in ("placeholder", "value", "title", "aria-label") and value and value.strip()
        ]
        return " ".join(values)

    def clickable_elements_to_string(self, include_attributes: list[str] | None = None) -> str:
        formatted_text: list[str] = []

        def process_node(node: DOMBaseNode) -> None:
            if isinstance(node, DOMElementNode):
                if node.highlight_index is not None:
                    text = node.get_all_text_till_next_clickable_element()
                    attributes_str = ""
                    if include_attributes:
                        attributes_str = ";".join(
                            distinct_attribute_values(node, include_attributes, exclude=text)
                        )
                    line = f"[{node.highlight_index}]<{node.tag_name} "
                    if attributes_str:
                        line += attributes_str
                    if text:
                        line += f"{'>' if attributes_str else ''}{text}"
                    line += "/>"
                    formatted_text.append(line)
                for child in node.children:
                    process_node(child)
            elif isinstance(node, DOMTextNode):
                if not node.has_parent_with_highlight_index() and node.is_visible:
                    formatted_text.append(node.text)

        process_node(self)
        return "\n".join(formatted_text)

    def get_file_upload_element(self, check_siblings: bool = True) -> DOMElementNode | None:
        if self.tag_name == "input" and self.attributes.get("type") == "file":
            return self

        for child in self.children:
            if isinstance(child, DOMElementNode):
                result = child.get_file_upload_element(check_siblings=False)
                if result:
                    return result

        parent = self.parent
        if check_siblings and parent is not None:
            for sibling in parent.children:
                if sibling is not self and isinstance(sibling, DOMElementNode):
                    result = sibling.get_file_upload_element(check_siblings=False)
                    if result:
                        return result

        return None


def distinct_attribute_values(
    node: DOMElementNode, include_attributes: list[str], exclude: str = ""
) -> list[str]:
    """Attribute values listed in ``include_attributes``, deduplicated in order.

    Values equal to the tag name or to ``exclude`` (usually the node text) are
    dropped since they add nothing to the listing.
    """
    values: list[str] = []
    for key, value in node.attributes.items():
        if key in include_attributes and value != node.tag_name and value not in values:
            values.append(value)
    if exclude in values:
        values.remove(exclude)
    return values


class DOMTree:
    """Arena owning every node of one snapshot, addressed by integer id."""

    def __init__(self) -> None:
        self._nodes: dict[int, DOMBaseNode] = {}
        self._next_id = 0

    def add(self, node: DOMBaseNode, parent: DOMElementNode | None = None) -> DOMBaseNode:
        node.node_id = self._next_id
        self._next_id += 1
        node.tree = self
        node.parent_id = parent.node_id if parent is not None else None
        self._nodes[node.node_id] = node
        if parent is not None:
            parent.children.append(node)
        return node

    def get(self, node_id: int) -> DOMBaseNode | None:
        return self._nodes.get(node_id)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes.values())


SelectorMap = dict[int, DOMElementNode]
ElementMap = dict[int, DOMBaseNode]


@dataclass
class DOMState:
    element_tree: DOMElementNode
    selector_map: SelectorMap
    element_map: ElementMap = field(default_factory=dict)
    tree: DOMTree | None = field(default=None, repr=False)
