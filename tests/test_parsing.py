"""Tests for tree-sitter parsing and declaration extraction."""

from __future__ import annotations

import pytest

from cyparallel.errors import ParseError, WeightEstimationError
from cyparallel.parsing.declarations import (
    DeclarationKind,
    DeclarationNode,
    TreeSitterDeclarationParser,
)
from cyparallel.parsing.treesitter import (
    SUPPORTED_LANGUAGES,
    detect_language,
    get_parser,
    has_parse_errors,
    parse_code,
)

# ---------------------------------------------------------------------------
# treesitter.py
# ---------------------------------------------------------------------------


class TestDetectLanguage:
    def test_javascript(self) -> None:
        assert detect_language("login.cy.js") == "javascript"
        assert detect_language("login.cy.mjs") == "javascript"
        assert detect_language("login.cy.jsx") == "javascript"

    def test_typescript(self) -> None:
        assert detect_language("login.cy.ts") == "typescript"
        assert detect_language("login.cy.mts") == "typescript"

    def test_tsx(self) -> None:
        assert detect_language("component.cy.tsx") == "tsx"

    def test_case_insensitive(self) -> None:
        assert detect_language("LOGIN.CY.TS") == "typescript"

    def test_unknown(self) -> None:
        assert detect_language("users.json") is None
        assert detect_language("Makefile") is None


class TestParser:
    def test_supported_languages(self) -> None:
        assert {"javascript", "typescript", "tsx"} == SUPPORTED_LANGUAGES

    def test_parser_is_cached(self) -> None:
        assert get_parser("typescript") is get_parser("typescript")

    def test_unsupported_language(self) -> None:
        with pytest.raises(ValueError, match="Unsupported language"):
            get_parser("cobol")

    def test_valid_source_has_no_errors(self) -> None:
        tree = parse_code(b"const x: number = 1;", "typescript")
        assert not has_parse_errors(tree.root_node)

    def test_broken_source_has_errors(self) -> None:
        tree = parse_code(b"describe('x', () => { it('a', ( => {});", "typescript")
        assert has_parse_errors(tree.root_node)


# ---------------------------------------------------------------------------
# declarations.py
# ---------------------------------------------------------------------------


def _parse(source: str, language: str = "typescript") -> list[DeclarationNode]:
    return TreeSitterDeclarationParser().parse(source.encode(), language)


class TestTreeSitterDeclarationParser:
    def test_top_level_cases(self) -> None:
        nodes = _parse("it('a', () => {});\nit('b', () => {});\n")

        assert [n.kind for n in nodes] == [DeclarationKind.CASE, DeclarationKind.CASE]
        assert [n.name for n in nodes] == ["a", "b"]
        assert [n.line for n in nodes] == [1, 2]
        assert not any(n.skipped for n in nodes)

    def test_suite_with_nested_cases(self) -> None:
        nodes = _parse(
            """
            describe('login', () => {
              beforeEach(() => cy.visit('/login'));
              it('shows form', () => {});
              it('submits', () => {});
            });
            """
        )

        assert len(nodes) == 1
        suite = nodes[0]
        assert suite.kind is DeclarationKind.SUITE
        assert suite.name == "login"
        assert [c.name for c in suite.children] == ["shows form", "submits"]

    def test_skip_markers(self) -> None:
        nodes = _parse(
            """
            describe.skip('skipped suite', () => {});
            xdescribe('x suite', () => {});
            it.skip('skipped case', () => {});
            xit('x case', () => {});
            """
        )

        assert [(n.kind, n.skipped) for n in nodes] == [
            (DeclarationKind.SUITE, True),
            (DeclarationKind.SUITE, True),
            (DeclarationKind.CASE, True),
            (DeclarationKind.CASE, True),
        ]

    def test_only_is_not_skipped(self) -> None:
        nodes = _parse("describe.only('s', () => { it.only('c', () => {}); });")

        assert nodes[0].kind is DeclarationKind.SUITE
        assert not nodes[0].skipped
        assert nodes[0].children[0].kind is DeclarationKind.CASE
        assert not nodes[0].children[0].skipped

    def test_context_and_specify_aliases(self) -> None:
        nodes = _parse("context('c', () => { specify('s', () => {}); xspecify('x', () => {}); });")

        suite = nodes[0]
        assert suite.kind is DeclarationKind.SUITE
        assert [(c.kind, c.skipped) for c in suite.children] == [
            (DeclarationKind.CASE, False),
            (DeclarationKind.CASE, True),
        ]

    def test_deep_nesting_and_siblings(self) -> None:
        nodes = _parse(
            """
            describe('a', () => {
              describe('b', () => {
                describe('c', () => {
                  it('deep', () => {});
                });
              });
              describe('sibling', () => {
                it('one', () => {});
              });
            });
            """
        )

        outer = nodes[0]
        assert [c.name for c in outer.children] == ["b", "sibling"]
        assert outer.children[0].children[0].children[0].name == "deep"

    def test_declarations_inside_helpers_and_loops(self) -> None:
        nodes = _parse(
            """
            describe('generated', () => {
              ['a', 'b'].forEach((name) => {
                it(`handles ${name}`, () => {});
              });
            });
            """
        )

        assert len(nodes[0].children) == 1
        assert nodes[0].children[0].kind is DeclarationKind.CASE

    def test_unrelated_member_calls_ignored(self) -> None:
        nodes = _parse("cy.get('button').click();\nlogin.skip();\nit.each([1])('x', () => {});")
        assert nodes == []

    def test_javascript_and_tsx(self) -> None:
        assert len(_parse("it('a', function () {});", "javascript")) == 1
        assert len(_parse("it('a', () => { cy.mount(<Button />); });", "tsx")) == 1

    def test_syntax_error_raises(self) -> None:
        with pytest.raises(ParseError, match="Syntax errors"):
            _parse("describe('x', () => { it('a', ( => {});")

    def test_parse_error_is_weight_estimation_error(self) -> None:
        with pytest.raises(WeightEstimationError):
            _parse("describe('x', () => {")

    def test_unsupported_language_raises(self) -> None:
        with pytest.raises(ParseError):
            TreeSitterDeclarationParser().parse(b"it('a')", "python")
