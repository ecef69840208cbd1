"""TypeScript/JavaScript language support."""

from __future__ import annotations

import codecs

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from refactorguard.engine._types import (
    DefinitionKind,
    DefinitionSet,
    Source,
    add_definition,
    make_definition,
)
from refactorguard.engine.normalizer import normalize_tokens
from refactorguard.errors import ParseError
from refactorguard.languages import detect_language
from refactorguard.languages._utils import first_error, node_text

_ts_lang = tree_sitter.Language(tree_sitter_typescript.language_typescript())
_tsx_lang = tree_sitter.Language(tree_sitter_typescript.language_tsx())
_js_lang = tree_sitter.Language(tree_sitter_javascript.language())

_DECLARATION_KINDS: dict[str, DefinitionKind] = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "type_alias_declaration": "type-alias",
    "enum_declaration": "enum",
}

_VARIABLE_STATEMENTS = frozenset({"lexical_declaration", "variable_declaration"})
_DESTRUCTURING_PATTERNS = frozenset({"object_pattern", "array_pattern"})
_WRAPPERS = frozenset({"export_statement", "ambient_declaration"})
_UNWRAPPABLE = _WRAPPERS | _VARIABLE_STATEMENTS | frozenset(_DECLARATION_KINDS)

_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_TRANSPARENT_EXPRESSIONS = frozenset(
    {"parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"}
)


def get_language(dialect: str) -> tree_sitter.Language:
    """Return the tree-sitter grammar for ``typescript``, ``tsx`` or ``javascript``."""
    if dialect == "tsx":
        return _tsx_lang
    if dialect == "javascript":
        return _js_lang
    return _ts_lang


def _dialect_for(path: str) -> str:
    return detect_language(path) or "typescript"


class TypeScriptExtractor:
    """Top-level definitions of .ts, .tsx and .js files via tree-sitter."""

    language = "typescript"

    def extract(self, source: Source, path: str) -> DefinitionSet:
        parser = tree_sitter.Parser(get_language(_dialect_for(path)))
        tree = parser.parse(_utf8(source, path))
        root = tree.root_node
        if root.has_error:
            raise _parse_error(root, path)

        definitions: DefinitionSet = {}
        for statement in root.named_children:
            _extract_statement(statement, path, definitions)
        return definitions


def _utf8(source: Source, path: str) -> bytes:
    """UTF-8 bytes of *source*; undecodable bytes are a ParseError."""
    if isinstance(source, str):
        return source.removeprefix("\ufeff").encode("utf-8")
    source = source.removeprefix(codecs.BOM_UTF8)
    try:
        source.decode("utf-8")
    except UnicodeDecodeError as e:
        line = source.count(b"\n", 0, e.start) + 1
        raise ParseError(path, f"not valid UTF-8: {e.reason}", line) from e
    return source


def _parse_error(root: tree_sitter.Node, path: str) -> ParseError:
    bad = first_error(root)
    if bad is None:
        return ParseError(path, "syntax error")
    if bad.is_missing:
        message = f"missing {bad.type!r}"
    else:
        snippet = node_text(bad).split("\n", 1)[0][:40]
        message = f"unexpected syntax near {snippet!r}"
    return ParseError(path, message, bad.start_point.row + 1, bad.start_point.column + 1)


def _unwrap(statement: tree_sitter.Node) -> tree_sitter.Node | None:
    """Return the declaration inside export/declare wrappers."""
    node = statement
    while node.type in _WRAPPERS:
        inner = node.child_by_field_name("declaration")
        if inner is None:
            inner = next(
                (c for c in node.named_children if c.type != "decorator"),
                None,
            )
        if inner is None or inner.type not in _UNWRAPPABLE:
            return None
        node = inner
    return node


def _extract_statement(
    statement: tree_sitter.Node,
    path: str,
    definitions: DefinitionSet,
) -> None:
    declaration = _unwrap(statement)
    if declaration is None:
        return

    if declaration.type in _VARIABLE_STATEMENTS:
        _extract_bindings(statement, declaration, path, definitions)
        return

    kind = _DECLARATION_KINDS.get(declaration.type)
    name_node = declaration.child_by_field_name("name")
    if kind is None or name_node is None:
        return
    header_end = _header_end(declaration)
    add_definition(
        definitions,
        make_definition(
            name=node_text(name_node),
            kind=kind,
            normalized_body=normalize_tokens(statement),
            signature=normalize_tokens(statement, header_end),
            path=path,
            start_line=statement.start_point.row + 1,
            end_line=statement.end_point.row + 1,
        ),
    )


def _header_end(declaration: tree_sitter.Node) -> int | None:
    body = declaration.child_by_field_name("body") or declaration.child_by_field_name("value")
    return body.start_byte if body is not None else None


def _extract_bindings(
    statement: tree_sitter.Node,
    declaration: tree_sitter.Node,
    path: str,
    definitions: DefinitionSet,
) -> None:
    """Each ``const``/``let``/``var`` binding; the whole statement is the body.

    Destructuring binds every identifier of the pattern as a constant.
    """
    body = normalize_tokens(statement)

    def add(name: str, kind: DefinitionKind, header_end: int | None) -> None:
        add_definition(
            definitions,
            make_definition(
                name=name,
                kind=kind,
                normalized_body=body,
                signature=normalize_tokens(statement, header_end),
                path=path,
                start_line=statement.start_point.row + 1,
                end_line=statement.end_point.row + 1,
            ),
        )

    for declarator in declaration.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        if name_node is None:
            continue
        value = declarator.child_by_field_name("value")
        if name_node.type in _DESTRUCTURING_PATTERNS:
            header_end = value.start_byte if value is not None else None
            for name in _pattern_names(name_node):
                add(name, "constant", header_end)
            continue
        if name_node.type != "identifier":
            continue
        kind: DefinitionKind = "constant"
        header_end = None
        if value is not None:
            if _is_function_like(value):
                kind = "function"
            header_end = _value_header_end(value)
        add(node_text(name_node), kind, header_end)


def _pattern_names(pattern: tree_sitter.Node) -> list[str]:
    """Identifiers bound by an object or array destructuring pattern."""
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [node_text(pattern)]
    if pattern.type == "pair_pattern":
        target = pattern.child_by_field_name("value")
    elif pattern.type in ("assignment_pattern", "object_assignment_pattern"):
        target = pattern.child_by_field_name("left")
    elif pattern.type in _DESTRUCTURING_PATTERNS or pattern.type == "rest_pattern":
        names: list[str] = []
        for child in pattern.named_children:
            names.extend(_pattern_names(child))
        return names
    else:
        return []
    return _pattern_names(target) if target is not None else []


def _value_header_end(value: tree_sitter.Node) -> int:
    """End of a binding's header: a function value's body, else the value itself."""
    if value.type in _FUNCTION_VALUES:
        body = value.child_by_field_name("body")
        if body is not None:
            return body.start_byte
    return value.start_byte


def _is_function_like(node: tree_sitter.Node) -> bool:
    """Function values, including ones wrapped in calls like ``memo(() => ...)``."""
    if node.type in _FUNCTION_VALUES:
        return True
    if node.type in _TRANSPARENT_EXPRESSIONS:
        return any(_is_function_like(c) for c in node.named_children)
    if node.type == "call_expression":
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return False
        return any(_is_function_like(a) for a in arguments.named_children)
    return False
