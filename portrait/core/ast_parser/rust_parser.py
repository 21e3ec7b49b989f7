"""Rust declaration parser using tree-sitter.

Walks the tree-sitter AST to extract traits, impl blocks, structs, enums
and unions together with their outer attributes. Nested ``mod { }`` blocks
are flattened into the item list in source order.
"""

import logging
from typing import List, Optional

import tree_sitter
import tree_sitter_rust

from ..errors import ArgumentParseError
from .base import BaseSourceParser
from .models import (
    Attribute,
    ConstMember,
    Field,
    FnMember,
    ImplBlock,
    Member,
    Param,
    Signature,
    SourceItem,
    TraitDecl,
    TypeDecl,
    TypeMember,
    Variant,
    generic_param,
)
from .utils import split_top_level, strip_generic_args, take_group, take_path

logger = logging.getLogger(__name__)

_RUST_LANGUAGE = tree_sitter.Language(tree_sitter_rust.language())

_COMMENT_TYPES = frozenset({"line_comment", "block_comment"})

_ITEM_KINDS = {
    "trait_item": "trait",
    "impl_item": "impl",
    "struct_item": "struct",
    "enum_item": "enum",
    "union_item": "union",
}

_MEMBER_TYPES = frozenset({
    "const_item",
    "function_signature_item",
    "function_item",
    "associated_type",
    "type_item",
})

_SCOPED_PATH_TYPES = frozenset({"scoped_identifier", "scoped_type_identifier"})

# Wrapper used to re-parse captured member declarations.
_PORTRAIT_WRAPPER = "trait __PortraitItems"


class RustParser(BaseSourceParser):
    """tree-sitter based Rust declaration parser.

    Extracts:
    - Trait declarations -> TraitDecl (members: const/fn/type)
    - Impl blocks -> ImplBlock (provided members, header, verbatim body)
    - Struct/enum/union declarations -> TypeDecl (fields, variants)
    - Outer attributes -> Attribute
    """

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _RUST_LANGUAGE

    def extract_items(self, root: tree_sitter.Node, source: bytes, module_path: str = "") -> List[SourceItem]:
        """Extract items from a source file or module body."""
        items: List[SourceItem] = []
        pending: List[tree_sitter.Node] = []

        for child in root.named_children:
            if child.type == "attribute_item":
                pending.append(child)
                continue
            if child.type in _COMMENT_TYPES:
                continue

            attrs = [self._extract_attribute(a, source) for a in pending]
            start_byte = pending[0].start_byte if pending else child.start_byte
            span = self._span(pending[0] if pending else child)
            pending = []

            if child.type == "mod_item":
                body = child.child_by_field_name("body")
                if body is not None:
                    name = self._get_child_text(child, "name", source) or ""
                    nested = f"{module_path}::{name}" if module_path else name
                    items.extend(self.extract_items(body, source, nested))
                continue

            kind = _ITEM_KINDS.get(child.type)
            if kind is None:
                continue

            item = SourceItem(
                kind=kind,
                start_byte=start_byte,
                item_start_byte=child.start_byte,
                end_byte=child.end_byte,
                attrs=attrs,
                span=span,
                module_path=module_path,
            )
            if kind == "trait":
                item.decl = self._extract_trait(child, source, attrs)
            elif kind == "impl":
                item.decl = self._extract_impl(child, source, attrs)
            else:
                item.decl = self._extract_type_decl(child, source, attrs, kind)
            items.append(item)

        return items

    # =========================================================================
    # Single-item entry points
    # =========================================================================

    def parse_trait(self, text: str) -> TraitDecl:
        return self._parse_single(text, "trait")

    def parse_impl(self, text: str) -> ImplBlock:
        return self._parse_single(text, "impl")

    def parse_type_decl(self, text: str) -> TypeDecl:
        return self._parse_single(text, "struct", "enum", "union")

    def parse_trait_items(self, texts: List[str]) -> List[Member]:
        """Re-parse verbatim member declarations captured from a trait.

        Raises:
            ArgumentParseError: If the texts do not form exactly one member each
        """
        wrapped = _PORTRAIT_WRAPPER + " {\n" + "\n".join(texts) + "\n}\n"
        source = wrapped.encode("utf-8")
        tree = self.parse_tree(source)
        if tree.root_node.has_error:
            raise ArgumentParseError("captured trait items could not be parsed")

        trait_node = self._get_child_by_type(tree.root_node, "trait_item")
        if trait_node is None:
            raise ArgumentParseError("captured trait items could not be parsed")

        members = self._extract_members(trait_node.child_by_field_name("body"), source)
        if len(members) != len(texts):
            raise ArgumentParseError("braces should only contain one trait item")
        return members

    def collect_path_roots(self, texts: List[str]) -> List[str]:
        """Leading segments of the relative paths used in member declarations.

        Covers type names (``Bar`` in ``x: Bar``) and the first segment of
        scoped paths (``io`` in ``io::Result<()>``), in first-seen order.
        Absolute paths (``::core::fmt::Debug``) contribute nothing.
        """
        wrapped = _PORTRAIT_WRAPPER + " {\n" + "\n".join(texts) + "\n}\n"
        source = wrapped.encode("utf-8")
        tree = self.parse_tree(source)

        roots: List[str] = []
        trait_node = self._get_child_by_type(tree.root_node, "trait_item")
        if trait_node is not None and trait_node.child_by_field_name("body") is not None:
            self._walk_path_roots(trait_node.child_by_field_name("body"), source, roots)
        return roots

    def _walk_path_roots(self, node: tree_sitter.Node, source: bytes, roots: List[str]) -> None:
        if node.type == "type_identifier":
            self._add_root(self._text(node, source), roots)
            return

        skipped = node.child_by_field_name("name")
        if node.type in _SCOPED_PATH_TYPES:
            path = node.child_by_field_name("path")
            root = path
            while root is not None and root.type in _SCOPED_PATH_TYPES:
                root = root.child_by_field_name("path")
            if root is not None:
                self._add_root(strip_generic_args(self._text(root, source)), roots)
            for child in node.children:
                if child != path and child != skipped:
                    self._walk_path_roots(child, source, roots)
            return

        for child in node.children:
            if child != skipped:
                self._walk_path_roots(child, source, roots)

    @staticmethod
    def _add_root(name: str, roots: List[str]) -> None:
        if name and name not in roots:
            roots.append(name)

    def _parse_single(self, text: str, *kinds: str):
        source = text.encode("utf-8")
        tree = self.parse_tree(source)
        if tree.root_node.has_error:
            line = self._first_error_line(tree.root_node)
            raise ArgumentParseError(f"expected {' or '.join(kinds)} item, found a syntax error near line {line}")

        items = [i for i in self.extract_items(tree.root_node, source) if i.kind in kinds]
        if len(items) != 1:
            raise ArgumentParseError(f"expected exactly one {' or '.join(kinds)} item, found {len(items)}")
        return items[0].decl

    # =========================================================================
    # Item extractors
    # =========================================================================

    def _extract_trait(self, node: tree_sitter.Node, source: bytes, attrs: List[Attribute]) -> TraitDecl:
        visibility = self._get_child_by_type(node, "visibility_modifier")
        return TraitDecl(
            name=self._get_child_text(node, "name", source) or "",
            source=self._text(node, source),
            attrs=attrs,
            members=self._extract_members(node.child_by_field_name("body"), source),
            visibility=self._text(visibility, source) if visibility else "",
            span=self._span(node),
            generics=self._generic_params(self._get_child_text(node, "type_parameters", source)),
        )

    def _extract_impl(self, node: tree_sitter.Node, source: bytes, attrs: List[Attribute]) -> ImplBlock:
        body = node.child_by_field_name("body")
        where = self._get_child_by_type(node, "where_clause")
        if where is not None:
            end = where.start_byte
        else:
            end = body.start_byte if body is not None else node.end_byte
        header = self._slice(source, node.start_byte, end).rstrip()
        body_inner = self._slice(source, body.start_byte + 1, body.end_byte - 1) if body is not None else ""

        return ImplBlock(
            source=self._text(node, source),
            header=header,
            body_inner=body_inner,
            self_ty=self._get_child_text(node, "type", source) or "",
            members=self._extract_members(body, source),
            attrs=attrs,
            trait_path=self._get_child_text(node, "trait", source),
            negated=any(child.type == "!" for child in node.children),
            generics=self._generic_params(self._get_child_text(node, "type_parameters", source)),
            type_parameters=self._get_child_text(node, "type_parameters", source) or "",
            where_predicates=self._where_predicates(node, source),
            span=self._span(node),
        )

    def _extract_type_decl(
        self, node: tree_sitter.Node, source: bytes, attrs: List[Attribute], kind: str
    ) -> TypeDecl:
        body = node.child_by_field_name("body")
        decl = TypeDecl(
            kind=kind,
            name=self._get_child_text(node, "name", source) or "",
            source=self._text(node, source),
            attrs=attrs,
            generics=self._generic_params(self._get_child_text(node, "type_parameters", source)),
            where_predicates=self._where_predicates(node, source),
            span=self._span(node),
        )

        if kind == "enum":
            decl.variants = self._extract_variants(body, source)
        else:
            decl.fields = self._extract_fields(body, source)
        return decl

    # =========================================================================
    # Members
    # =========================================================================

    def _extract_members(self, body: Optional[tree_sitter.Node], source: bytes) -> List[Member]:
        """Extract const/fn/type members of a trait or impl body, in order."""
        members: List[Member] = []
        if body is None:
            return members

        pending: List[tree_sitter.Node] = []
        for child in body.named_children:
            if child.type == "attribute_item":
                pending.append(child)
                continue
            if child.type in _COMMENT_TYPES:
                continue

            attrs = [self._extract_attribute(a, source) for a in pending]
            start = pending[0].start_byte if pending else child.start_byte
            pending = []

            if child.type not in _MEMBER_TYPES:
                continue

            member_source = self._slice(source, start, child.end_byte)
            span = self._span(child)
            name = self._get_child_text(child, "name", source) or ""

            if child.type == "const_item":
                members.append(ConstMember(
                    name=name,
                    source=member_source,
                    attrs=attrs,
                    span=span,
                    ty=self._get_child_text(child, "type", source) or "",
                    default=self._get_child_text(child, "value", source),
                ))
            elif child.type in ("function_signature_item", "function_item"):
                members.append(FnMember(
                    name=name,
                    source=member_source,
                    attrs=attrs,
                    span=span,
                    sig=self._extract_signature(child, source),
                    body=self._get_child_text(child, "body", source),
                ))
            else:
                where = self._get_child_by_type(child, "where_clause")
                members.append(TypeMember(
                    name=name,
                    source=member_source,
                    attrs=attrs,
                    span=span,
                    generics=self._get_child_text(child, "type_parameters", source) or "",
                    bounds=self._get_child_text(child, "bounds", source),
                    where_clause=self._text(where, source) if where else None,
                    value=self._get_child_text(child, "type", source),
                ))

        return members

    def _extract_signature(self, node: tree_sitter.Node, source: bytes) -> Signature:
        modifiers = self._get_child_by_type(node, "function_modifiers")
        where = self._get_child_by_type(node, "where_clause")
        return Signature(
            name=self._get_child_text(node, "name", source) or "",
            params=self._extract_params(node.child_by_field_name("parameters"), source),
            qualifiers=self._text(modifiers, source) if modifiers else "",
            generics=self._get_child_text(node, "type_parameters", source) or "",
            return_type=self._get_child_text(node, "return_type", source),
            where_clause=self._text(where, source) if where else None,
        )

    def _extract_params(self, node: Optional[tree_sitter.Node], source: bytes) -> List[Param]:
        params: List[Param] = []
        if node is None:
            return params

        pending: List[Attribute] = []
        for child in node.named_children:
            if child.type == "attribute_item":
                pending.append(self._extract_attribute(child, source))
                continue
            if child.type in _COMMENT_TYPES:
                continue

            text = self._text(child, source)
            if child.type == "self_parameter":
                params.append(Param(
                    source=text,
                    is_receiver=True,
                    mutable="mut" in text.replace("&", " ").split(),
                    reference=text.startswith("&"),
                    attrs=pending,
                ))
            elif child.type == "parameter":
                pattern = self._get_child_text(child, "pattern", source) or ""
                mutable = self._get_child_by_type(child, "mutable_specifier") is not None
                if pattern.startswith("mut "):
                    pattern = pattern[4:].strip()
                    mutable = True
                params.append(Param(
                    source=text,
                    is_receiver=pattern == "self",
                    pattern=pattern,
                    ty=self._get_child_text(child, "type", source),
                    mutable=mutable,
                    attrs=pending,
                ))
            else:
                params.append(Param(source=text, is_receiver=False, ty=text, attrs=pending))
            pending = []

        return params

    # =========================================================================
    # Fields and variants
    # =========================================================================

    def _extract_fields(self, body: Optional[tree_sitter.Node], source: bytes) -> List[Field]:
        fields: List[Field] = []
        if body is None:
            return fields

        pending: List[Attribute] = []
        for child in body.named_children:
            if child.type == "attribute_item":
                pending.append(self._extract_attribute(child, source))
                continue
            if child.type in _COMMENT_TYPES or child.type == "visibility_modifier":
                continue

            if child.type == "field_declaration":
                fields.append(Field(
                    index=len(fields),
                    name=self._get_child_text(child, "name", source),
                    ty=self._get_child_text(child, "type", source) or "",
                    attrs=pending,
                ))
            elif body.type == "ordered_field_declaration_list":
                fields.append(Field(index=len(fields), ty=self._text(child, source), attrs=pending))
            pending = []

        return fields

    def _extract_variants(self, body: Optional[tree_sitter.Node], source: bytes) -> List[Variant]:
        variants: List[Variant] = []
        if body is None:
            return variants

        pending: List[Attribute] = []
        for child in body.named_children:
            if child.type == "attribute_item":
                pending.append(self._extract_attribute(child, source))
                continue
            if child.type != "enum_variant":
                continue

            variants.append(Variant(
                name=self._get_child_text(child, "name", source) or "",
                fields=self._extract_fields(child.child_by_field_name("body"), source),
                attrs=pending,
            ))
            pending = []

        return variants

    # =========================================================================
    # Attributes and generics
    # =========================================================================

    def _extract_attribute(self, node: tree_sitter.Node, source: bytes) -> Attribute:
        """Split ``#[path(args)]`` / ``#[path = value]`` into its parts."""
        text = self._text(node, source).strip()
        inner = text[2:-1].strip() if text.startswith("#[") and text.endswith("]") else text

        path, rest = take_path(inner)
        args = None
        value = None
        if rest[:1] in ("(", "[", "{"):
            args, _ = take_group(rest, rest[0])
        elif rest.startswith("="):
            value = rest[1:].strip()

        return Attribute(
            path=path or "",
            args=args,
            source=text,
            value=value,
            span=self._span(node),
            byte_range=(node.start_byte, node.end_byte),
        )

    @staticmethod
    def _generic_params(text: Optional[str]):
        if not text:
            return []
        inner = text.strip()[1:-1]
        return [generic_param(p) for p in split_top_level(inner, ",", angle=True)]

    def _where_predicates(self, node: tree_sitter.Node, source: bytes) -> List[str]:
        where = self._get_child_by_type(node, "where_clause")
        if where is None:
            return []
        text = self._text(where, source).strip()
        if text.startswith("where"):
            text = text[len("where"):]
        return split_top_level(text, ",", angle=True)
