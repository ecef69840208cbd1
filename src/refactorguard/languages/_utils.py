"""Shared utilities for language modules."""

from __future__ import annotations

import tree_sitter


def node_text(node: tree_sitter.Node) -> str:
    """Safely get the text of a tree-sitter node."""
    text = node.text
    if text is None:
        return ""
    return text.decode("utf-8")


def first_error(node: tree_sitter.Node) -> tree_sitter.Node | None:
    """Return the first ERROR or MISSING node in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None
