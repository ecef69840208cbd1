"""Token-stream normalization for tree-sitter syntax trees.

Python definitions are normalized by re-serializing the parsed tree with
``ast.unparse`` (see ``refactorguard.languages.python._ast_extract``). No
such re-printer is available for TypeScript/JavaScript, so those definitions
are normalized here by walking the concrete syntax tree:

* ``comment`` nodes are dropped;
* every other leaf is emitted verbatim and joined with a single space;
* string, template string and regex literals are emitted whole, so their
  contents (including whitespace and comment markers) stay significant;
* the text between JSX child tags is reduced to the text it renders (JSX
  whitespace rules, runs of whitespace collapsed) and emitted quoted, so a
  significant space survives;
* every statement of a statement list ends in an explicit ``;`` token. The
  grammar hides semicolons inserted by ASI, so ``return\\n  x`` and
  ``return x`` would otherwise read the same. Statements that end in a
  block (declarations, ``if``, loops, ...) take no terminator;
* a line break follows each ``;``, ``{`` and ``}`` token so line diffs of two
  bodies remain readable.

This path is weaker than the Python one. Quote style, trailing commas and
redundant parentheses are tokens and therefore still show up as
modifications.
"""

from __future__ import annotations

import json
import re

import tree_sitter

from refactorguard.languages._utils import node_text

_SKIPPED_TYPES = frozenset({"comment", "html_comment"})
_ATOMIC_TYPES = frozenset({"string", "template_string", "regex"})
_JSX_ELEMENT = "jsx_element"
# Rendered as text inside a JSX element, ``// ...`` included.
_JSX_TEXT_TYPES = frozenset({"jsx_text", "html_character_reference", "comment"})
_LINE_BREAK_AFTER = frozenset({";", "{", "}"})

_TERMINATOR = ";"
_STATEMENT_LISTS = frozenset({"program", "statement_block", "class_body"})
_SWITCH_BODIES = frozenset({"switch_case", "switch_default"})
_NOT_STATEMENTS = _SKIPPED_TYPES | {"decorator"}
_WRAPPERS = frozenset({"export_statement", "ambient_declaration"})

# Statements whose closing brace ends them; no semicolon follows.
_BLOCK_STATEMENTS = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "enum_declaration",
        "internal_module",
        "module",
        "statement_block",
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "try_statement",
        "switch_statement",
        "labeled_statement",
        "with_statement",
        "method_definition",
        "class_static_block",
    }
)

_NEWLINE = re.compile(r"\r\n|\r|\n")
_WHITESPACE = re.compile(r"\s+")


def jsx_text_value(text: str) -> str:
    """The text a JSX text child renders.

    Whitespace-only lines and whitespace adjacent to a line break are
    removed, the remaining lines are joined with a space and whitespace runs
    collapse to one space. Whitespace on a single line is kept, so
    ``<b>a</b> <i>b</i>`` keeps the space between the elements.
    """
    lines = _NEWLINE.split(text)
    last = len(lines) - 1
    kept: list[str] = []
    for i, line in enumerate(lines):
        if i > 0:
            line = line.lstrip()
        if i < last:
            line = line.rstrip()
        if line:
            kept.append(line)
    return _WHITESPACE.sub(" ", " ".join(kept))


def _jsx_children(element: tree_sitter.Node) -> list[tree_sitter.Node | str]:
    """Child tags and expressions of *element*, with the text between them.

    The text is taken from the source rather than from ``jsx_text`` nodes,
    which leave out whitespace-only runs.
    """
    source = element.text or b""
    base = element.start_byte
    out: list[tree_sitter.Node | str] = []
    cursor: int | None = None
    for child in element.children:
        if child.type in _JSX_TEXT_TYPES:
            continue
        if cursor is not None:
            raw = source[cursor - base : child.start_byte - base].decode("utf-8")
            value = jsx_text_value(raw)
            if value:
                out.append(json.dumps(value, ensure_ascii=False))
        out.append(child)
        cursor = child.end_byte
    return out


def _last_leaf(node: tree_sitter.Node) -> tree_sitter.Node:
    current = node
    while current.child_count:
        children = [c for c in current.children if c.type not in _SKIPPED_TYPES]
        if not children:
            break
        current = children[-1]
    return current


def _needs_terminator(statement: tree_sitter.Node) -> bool:
    last = _last_leaf(statement)
    if last.type == ";":
        return False
    if last.type == "}":
        inner: tree_sitter.Node | None = statement
        while inner is not None and inner.type in _WRAPPERS:
            inner = inner.child_by_field_name("declaration") or next(
                (c for c in inner.named_children if c.type not in _NOT_STATEMENTS), None
            )
        if inner is not None and inner.type in _BLOCK_STATEMENTS:
            return False
    return True


def _is_statement(parent: tree_sitter.Node, index: int, child: tree_sitter.Node) -> bool:
    if parent.type in _SWITCH_BODIES:
        return parent.field_name_for_child(index) == "body"
    return child.is_named and child.type not in _NOT_STATEMENTS


def _terminated_children(
    node: tree_sitter.Node, end_byte: int | None
) -> list[tree_sitter.Node | str]:
    """Children of a statement list, each statement followed by ``;``.

    Source semicolons between members are dropped; the terminators emitted
    here replace them.
    """
    out: list[tree_sitter.Node | str] = []
    for i, child in enumerate(node.children):
        if child.type == ";":
            continue
        out.append(child)
        if end_byte is not None and child.end_byte > end_byte:
            continue
        if _is_statement(node, i, child) and _needs_terminator(child):
            out.append(_TERMINATOR)
    return out


def _is_listed_statement(node: tree_sitter.Node) -> bool:
    parent = node.parent
    return (
        parent is not None
        and parent.type in _STATEMENT_LISTS
        and node.type not in _NOT_STATEMENTS
        and node.is_named
    )


def iter_tokens(node: tree_sitter.Node, end_byte: int | None = None) -> list[str]:
    """Return the normalized tokens under *node* that start before *end_byte*."""
    tokens: list[str] = []
    stack: list[tree_sitter.Node | str] = [node]
    if end_byte is None and _is_listed_statement(node) and _needs_terminator(node):
        stack.insert(0, _TERMINATOR)
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            tokens.append(current)
            continue
        if end_byte is not None and current.start_byte >= end_byte:
            continue
        if current.type in _SKIPPED_TYPES:
            continue
        if current.child_count == 0 or current.type in _ATOMIC_TYPES:
            text = node_text(current)
            if text:
                tokens.append(text)
            continue
        if current.type == _JSX_ELEMENT:
            stack.extend(reversed(_jsx_children(current)))
        elif current.type in _STATEMENT_LISTS or current.type in _SWITCH_BODIES:
            stack.extend(reversed(_terminated_children(current, end_byte)))
        else:
            stack.extend(reversed(current.children))
    return tokens


def normalize_tokens(node: tree_sitter.Node, end_byte: int | None = None) -> str:
    """Canonical text of *node*, insensitive to comments and formatting."""
    lines: list[str] = []
    current: list[str] = []
    for token in iter_tokens(node, end_byte):
        current.append(token)
        if token in _LINE_BREAK_AFTER:
            lines.append(" ".join(current))
            current = []
    if current:
        lines.append(" ".join(current))
    return "\n".join(lines)
