"""Source parsing for test weight estimation."""

from cyparallel.parsing.declarations import (
    DeclarationKind,
    DeclarationNode,
    DeclarationParser,
    TreeSitterDeclarationParser,
)
from cyparallel.parsing.treesitter import detect_language, parse_code

__all__ = [
    "DeclarationKind",
    "DeclarationNode",
    "DeclarationParser",
    "TreeSitterDeclarationParser",
    "detect_language",
    "parse_code",
]
