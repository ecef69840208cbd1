"""Top-level definition extraction for Python via the ``ast`` module.

Standard library only: this file is also executed as a script under a
foreign interpreter by :class:`refactorguard.languages.python.ExternalPythonExtractor`.

Normalization is ``ast.unparse``. Comments, blank lines, quote style and
redundant parentheses are erased by construction, so two definitions unparse
to the same text exactly when their syntax trees are equal.
"""

from __future__ import annotations

import ast
import json
import sys
from typing import Any

# Python 3.12+ ``type X = ...`` statements
_TYPE_ALIAS = getattr(ast, "TypeAlias", ())


def extract_records(source: str | bytes, filename: str = "<unknown>") -> list[dict[str, Any]]:
    """Return one record per top-level binding, in source order.

    Raw bytes are decoded by the parser, honoring a coding declaration.
    Raises SyntaxError (or ValueError for NUL bytes or undecodable bytes)
    when *source* does not parse.
    """
    tree = ast.parse(source, filename=filename)
    records: list[dict[str, Any]] = []
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            records.append(_record(node, "function", node.name, _function_signature(node)))
        elif isinstance(node, ast.ClassDef):
            records.append(_record(node, "class", node.name, _class_signature(node)))
        elif isinstance(node, ast.Assign):
            for name in _bound_names(node.targets):
                records.append(_record(node, "constant", name, name))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            name = node.target.id
            signature = f"{name}: {ast.unparse(node.annotation)}"
            records.append(_record(node, "type-alias", name, signature))
        elif isinstance(node, _TYPE_ALIAS):
            name = node.name.id
            records.append(_record(node, "type-alias", name, f"type {name}"))
    return records


def _record(node: ast.stmt, kind: str, name: str, signature: str) -> dict[str, Any]:
    decorators = getattr(node, "decorator_list", [])
    start = min([node.lineno, *(d.lineno for d in decorators)])
    return {
        "kind": kind,
        "name": name,
        "body": ast.unparse(node),
        "signature": signature,
        "start_line": start,
        "end_line": node.end_lineno or node.lineno,
    }


def _bound_names(targets: list[ast.expr]) -> list[str]:
    """Names bound by assignment targets, including tuple/list unpacking."""
    names: list[str] = []
    for target in targets:
        if isinstance(target, ast.Name):
            names.append(target.id)
        elif isinstance(target, (ast.Tuple, ast.List)):
            names.extend(_bound_names(list(target.elts)))
        elif isinstance(target, ast.Starred):
            names.extend(_bound_names([target.value]))
    return names


def _decorator_lines(node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef) -> list[str]:
    return [f"@{ast.unparse(d)}" for d in node.decorator_list]


def _function_signature(node: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    sig = f"{prefix} {node.name}({ast.unparse(node.args)})"
    if node.returns is not None:
        sig += f" -> {ast.unparse(node.returns)}"
    return "\n".join([*_decorator_lines(node), sig])


def _class_signature(node: ast.ClassDef) -> str:
    parts = [ast.unparse(b) for b in node.bases]
    parts.extend(ast.unparse(k) for k in node.keywords)
    sig = f"class {node.name}({', '.join(parts)})" if parts else f"class {node.name}"
    return "\n".join([*_decorator_lines(node), sig])


def main() -> int:
    """Script mode: source bytes on stdin, JSON on stdout."""
    filename = sys.argv[1] if len(sys.argv) > 1 else "<stdin>"
    source = sys.stdin.buffer.read()
    try:
        payload: dict[str, Any] = {"definitions": extract_records(source, filename)}
    except SyntaxError as e:
        payload = {"error": e.msg, "line": e.lineno, "column": e.offset}
    except ValueError as e:
        payload = {"error": str(e), "line": None, "column": None}
    json.dump(payload, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
