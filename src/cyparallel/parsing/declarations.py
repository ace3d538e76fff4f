"""Suite and test-case declaration extraction.

A :class:`DeclarationParser` turns test source code into a tree of
:class:`DeclarationNode` objects: suites (``describe``/``context``) and test
cases (``it``/``specify``), each flagged when marked skipped.  The weight
estimator only depends on this abstraction; :class:`TreeSitterDeclarationParser`
is the implementation used for Cypress (Mocha BDD) specs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from cyparallel.errors import ParseError
from cyparallel.parsing.treesitter import (
    collect_error_ranges,
    has_parse_errors,
    node_text,
    parse_code,
)

if TYPE_CHECKING:
    import tree_sitter


class DeclarationKind(Enum):
    """Kind of a test declaration."""

    SUITE = "suite"
    CASE = "case"


@dataclass(frozen=True)
class DeclarationNode:
    """A suite or test-case declaration and the declarations nested in it."""

    kind: DeclarationKind
    name: str = ""
    skipped: bool = False
    line: int = 0
    children: tuple[DeclarationNode, ...] = ()


class DeclarationParser(ABC):
    """Parses test source into a declaration tree."""

    @abstractmethod
    def parse(self, source: bytes, language: str) -> list[DeclarationNode]:
        """Return the top-level declarations of *source*.

        Raises:
            ParseError: If the source is malformed.
        """


# ── Mocha BDD vocabulary ─────────────────────────────────────────

_SUITE_NAMES = frozenset({"describe", "context"})
_CASE_NAMES = frozenset({"it", "specify"})
_SKIPPED_SUITE_NAMES = frozenset({"xdescribe", "xcontext"})
_SKIPPED_CASE_NAMES = frozenset({"xit", "xspecify"})
_SKIP_MODIFIER = "skip"
_ONLY_MODIFIER = "only"

_STRING_NODE_TYPES = frozenset({"string", "template_string"})


def _classify_call(node: tree_sitter.Node) -> tuple[DeclarationKind, bool] | None:
    """Classify a ``call_expression`` as a suite/case declaration.

    Returns ``(kind, skipped)`` or ``None`` for unrelated calls.
    """
    callee = node.child_by_field_name("function")
    if callee is None:
        return None

    if callee.type == "identifier":
        name = node_text(callee)
        if name in _SUITE_NAMES:
            return DeclarationKind.SUITE, False
        if name in _SKIPPED_SUITE_NAMES:
            return DeclarationKind.SUITE, True
        if name in _CASE_NAMES:
            return DeclarationKind.CASE, False
        if name in _SKIPPED_CASE_NAMES:
            return DeclarationKind.CASE, True
        return None

    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            return None
        modifier = node_text(prop)
        if modifier not in (_SKIP_MODIFIER, _ONLY_MODIFIER):
            return None
        skipped = modifier == _SKIP_MODIFIER
        name = node_text(obj)
        if name in _SUITE_NAMES:
            return DeclarationKind.SUITE, skipped
        if name in _CASE_NAMES:
            return DeclarationKind.CASE, skipped

    return None


def _title(node: tree_sitter.Node) -> str:
    args = node.child_by_field_name("arguments")
    if args is None or not args.named_children:
        return ""
    first = args.named_children[0]
    if first.type in _STRING_NODE_TYPES:
        return node_text(first)[1:-1]
    return node_text(first)


def _collect(node: tree_sitter.Node) -> list[DeclarationNode]:
    """Depth-first, source-ordered collection of declarations under *node*."""
    found: list[DeclarationNode] = []
    for child in node.children:
        classified = _classify_call(child) if child.type == "call_expression" else None
        if classified is None:
            found.extend(_collect(child))
            continue
        kind, skipped = classified
        found.append(
            DeclarationNode(
                kind=kind,
                name=_title(child),
                skipped=skipped,
                line=child.start_point.row + 1,
                children=tuple(_collect(child)),
            )
        )
    return found


class TreeSitterDeclarationParser(DeclarationParser):
    """Declaration parser backed by tree-sitter JavaScript/TypeScript grammars."""

    def parse(self, source: bytes, language: str) -> list[DeclarationNode]:
        try:
            tree = parse_code(source, language)
        except ValueError as exc:
            raise ParseError(str(exc)) from exc

        root = tree.root_node
        if has_parse_errors(root):
            ranges = ", ".join(f"{start}-{end}" for start, end in collect_error_ranges(root))
            raise ParseError(f"Syntax errors in {language} source (lines {ranges or '?'})")

        return _collect(root)
