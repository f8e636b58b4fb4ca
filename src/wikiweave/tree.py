"""Document tree nodes and traversal.

Nodes follow the mdast shape: a ``type`` tag, a leaf ``value`` or a list of
``children``, and type-specific properties in ``attrs``. Text nodes carrying
``literal`` came from escapes or entities and are never read as wiki syntax.

Traversal is two-phase. ``visit`` snapshots every matching node before any
callback runs, callbacks record structural edits on a ``Plan``, and the plan
is applied once the sweep is over. Callbacks may still change a node's own
fields in place; only changes to a parent's child list must go through the plan.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, NamedTuple

log = logging.getLogger(__name__)

# Leaf types whose payload lives in ``value``
LEAF_TYPES = frozenset({"text", "html", "inlineCode", "code"})


@dataclass(eq=False)
class Node:
    """A node of the document tree.

    Identity matters: plans address parents by object identity, so nodes
    compare by ``is`` rather than by content.
    """

    type: str
    value: str | None = None
    children: list[Node] | None = None
    attrs: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def text(cls, value: str) -> Node:
        return cls("text", value=value)

    @classmethod
    def html(cls, value: str) -> Node:
        return cls("html", value=value)

    def make_html(self, value: str) -> None:
        """Turn this node into a raw-markup node in place."""
        self.type = "html"
        self.value = value
        self.children = None
        self.attrs = {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to an mdast-shaped dict (attrs flattened into the node)."""
        data: dict[str, Any] = {"type": self.type, **self.attrs}
        if self.value is not None:
            data["value"] = self.value
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """Build a tree from an mdast-shaped dict such as remark's JSON output."""
        attrs = {
            key: value
            for key, value in data.items()
            if key not in ("type", "value", "children", "position")
        }
        children = data.get("children")
        return cls(
            type=data["type"],
            value=data.get("value"),
            children=[cls.from_dict(child) for child in children] if children is not None else None,
            attrs=attrs,
        )


def to_string(node: Node) -> str:
    """Flatten a node to its plain text content.

    Image alt text is included, and wiki references flatten back to their
    source syntax so text-level patterns still see them.
    """
    if node.type == "wikiReference":
        prefix = "!" if node.attrs.get("embed") else ""
        return f"{prefix}[[{node.attrs.get('label', '')}]]"
    if node.value is not None:
        return node.value
    if node.type == "image":
        return node.attrs.get("alt") or ""
    if node.children:
        return "".join(to_string(child) for child in node.children)
    return ""


class Visit(NamedTuple):
    """A matched node together with its position in the tree."""

    node: Node
    index: int | None
    parent: Node | None
    ancestors: tuple[Node, ...]  # Root first, parent last


def walk(root: Node) -> Iterator[Visit]:
    """Yield every node depth-first, pre-order, with its position."""
    stack: list[tuple[Node, int | None, tuple[Node, ...]]] = [(root, None, ())]
    while stack:
        node, index, ancestors = stack.pop()
        parent = ancestors[-1] if ancestors else None
        yield Visit(node, index, parent, ancestors)
        if node.children:
            path = (*ancestors, node)
            for i in range(len(node.children) - 1, -1, -1):
                stack.append((node.children[i], i, path))


class Plan:
    """Structural edits collected during a sweep and applied afterwards."""

    def __init__(self) -> None:
        self._edits: dict[int, tuple[Node, dict[int, list[Node]]]] = {}

    def replace(self, parent: Node, index: int, nodes: Iterable[Node]) -> None:
        """Schedule ``parent.children[index]`` to be replaced by ``nodes``.

        An empty ``nodes`` removes the child. The first edit recorded for a
        position wins.
        """
        _, positions = self._edits.setdefault(id(parent), (parent, {}))
        if index in positions:
            log.debug("Ignoring second edit of %s child %d", parent.type, index)
            return
        positions[index] = list(nodes)

    def remove(self, parent: Node, index: int) -> None:
        self.replace(parent, index, [])

    def __len__(self) -> int:
        return sum(len(positions) for _, positions in self._edits.values())

    def apply(self) -> None:
        """Rebuild each edited parent's child list, preserving order."""
        for parent, positions in self._edits.values():
            old = parent.children or []
            rebuilt: list[Node] = []
            for i, child in enumerate(old):
                if i in positions:
                    rebuilt.extend(positions[i])
                else:
                    rebuilt.append(child)
            parent.children = rebuilt
        self._edits.clear()


def visit(
    root: Node,
    types: str | Iterable[str],
    callback: Callable[[Visit, Plan], None],
) -> int:
    """Run ``callback`` for every node whose type is in ``types``.

    Args:
        root: Tree to sweep.
        types: A node type or several.
        callback: Receives the visit and the plan to record edits on.

    Returns:
        Number of structural edits applied.
    """
    wanted = {types} if isinstance(types, str) else set(types)
    matches = [v for v in walk(root) if v.node.type in wanted]

    plan = Plan()
    for match in matches:
        callback(match, plan)

    edits = len(plan)
    plan.apply()
    return edits
