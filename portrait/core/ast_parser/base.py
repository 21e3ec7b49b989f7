"""Base class for the tree-sitter backed declaration parser.

Shared parsing plumbing lives here (parser construction, node text access,
child lookup, error collection); Rust-specific extraction is delegated to
``RustParser``.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import tree_sitter

from .models import ParseError, ParseResult, SourceItem, Span

logger = logging.getLogger(__name__)


class BaseSourceParser(ABC):
    """Abstract base for tree-sitter parsers.

    Subclasses implement:
    - get_tree_sitter_language(): returns tree-sitter Language object
    - extract_items(): walks AST tree and extracts SourceItem objects
    """

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        """Return the tree-sitter Language object for this language."""
        ...

    @abstractmethod
    def extract_items(self, root: tree_sitter.Node, source: bytes, module_path: str = "") -> List[SourceItem]:
        """Extract declarations from a parsed tree-sitter node.

        Args:
            root: Node whose direct children are items
            source: Raw source bytes
            module_path: Path of the enclosing inline module, "" at file level

        Returns:
            List of SourceItem objects
        """
        ...

    def parse_tree(self, source_bytes: bytes) -> tree_sitter.Tree:
        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        return parser.parse(source_bytes)

    def parse_file(self, file_path: str) -> ParseResult:
        """Parse a source file into a ParseResult.

        Args:
            file_path: Path to the source file

        Returns:
            ParseResult with extracted items
        """
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                source_text = f.read()
        except OSError as e:
            return ParseResult(
                file_path=file_path,
                items=[],
                errors=[ParseError(file_path=file_path, line=0, message=str(e), severity="error")],
            )

        return self.parse_source(source_text, file_path)

    def parse_source(self, source_text: str, file_path: str) -> ParseResult:
        """Parse source code string into a ParseResult.

        Args:
            source_text: Source code as string
            file_path: File path (for metadata)

        Returns:
            ParseResult with extracted items and metadata
        """
        errors: List[ParseError] = []
        source_bytes = source_text.encode("utf-8")
        line_count = source_text.count("\n") + (1 if source_text and not source_text.endswith("\n") else 0)

        tree = self.parse_tree(source_bytes)

        if tree.root_node.has_error:
            line = self._first_error_line(tree.root_node)
            errors.append(
                ParseError(
                    file_path=file_path,
                    line=line,
                    message="Tree-sitter reported parse errors in file",
                    severity="warning",
                )
            )
            logger.warning(f"Syntax errors in {file_path} (first near line {line})")

        items = self.extract_items(tree.root_node, source_bytes)

        return ParseResult(
            file_path=file_path,
            items=items,
            line_count=line_count,
            errors=errors,
        )

    # =========================================================================
    # Node helpers
    # =========================================================================

    @staticmethod
    def _text(node: tree_sitter.Node, source: bytes) -> str:
        return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _slice(source: bytes, start: int, end: int) -> str:
        return source[start:end].decode("utf-8", errors="replace")

    @staticmethod
    def _get_child_text(node: tree_sitter.Node, field_name: str, source: bytes) -> Optional[str]:
        child = node.child_by_field_name(field_name)
        if child:
            return source[child.start_byte:child.end_byte].decode("utf-8", errors="replace")
        return None

    @staticmethod
    def _get_child_by_type(node: tree_sitter.Node, type_name: str) -> Optional[tree_sitter.Node]:
        for child in node.children:
            if child.type == type_name:
                return child
        return None

    @staticmethod
    def _span(node: tree_sitter.Node) -> Span:
        return Span(line=node.start_point.row + 1, column=node.start_point.column + 1)

    @staticmethod
    def _first_error_line(node: tree_sitter.Node) -> int:
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type == "ERROR" or current.is_missing:
                return current.start_point.row + 1
            stack.extend(reversed(current.children))
        return 0
