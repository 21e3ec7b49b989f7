"""Portrait AST Parser: tree-sitter based Rust declaration parsing.

Public API:
    parse_file(path) → ParseResult
    parse_source(source, file_path) → ParseResult
    get_parser() → RustParser
"""

from .models import (
    Attribute,
    ConstMember,
    Field,
    FnMember,
    GenericParam,
    ImplBlock,
    Member,
    MemberKind,
    Param,
    ParseError,
    ParseResult,
    Signature,
    SourceItem,
    Span,
    TraitDecl,
    TypeDecl,
    TypeMember,
    Variant,
    cfg_attrs,
)

__all__ = [
    "parse_file",
    "parse_source",
    "get_parser",
    "Attribute",
    "ConstMember",
    "Field",
    "FnMember",
    "GenericParam",
    "ImplBlock",
    "Member",
    "MemberKind",
    "Param",
    "ParseError",
    "ParseResult",
    "Signature",
    "SourceItem",
    "Span",
    "TraitDecl",
    "TypeDecl",
    "TypeMember",
    "Variant",
    "cfg_attrs",
]

# Parser instance, lazy-loaded to avoid loading the grammar on import
_parser = None


def get_parser():
    """Get the shared RustParser instance."""
    global _parser
    if _parser is None:
        from .rust_parser import RustParser
        _parser = RustParser()
    return _parser


def parse_file(file_path: str) -> ParseResult:
    """Parse a Rust source file into its items.

    Args:
        file_path: Path to the source file

    Returns:
        ParseResult containing extracted items
    """
    return get_parser().parse_file(file_path)


def parse_source(source_text: str, file_path: str = "<memory>") -> ParseResult:
    """Parse Rust source code string into its items.

    Args:
        source_text: Source code as string
        file_path: File path (for metadata)

    Returns:
        ParseResult containing extracted items
    """
    return get_parser().parse_source(source_text, file_path)
