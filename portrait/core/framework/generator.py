"""Generator strategy base class and the contexts passed to it.

A generator exposes one function per member kind. The completion engine
dispatches each unimplemented trait member to the matching function and
gives the generator one chance each to add where-predicates and attributes
to the produced impl block.
"""

from dataclasses import dataclass
from typing import List

from ..ast_parser.models import ConstMember, FnMember, GenericParam, ImplBlock, Member, TypeDecl, TypeMember
from ..errors import UnsupportedItemError


@dataclass(frozen=True)
class ImplContext:
    """Available context passed to generators completing an impl block."""

    all_trait_items: List[Member]
    impl_block: ImplBlock

    @property
    def trait_path(self) -> str:
        return self.impl_block.trait_path or ""

    @property
    def generics(self) -> List[GenericParam]:
        return self.impl_block.generics

    @property
    def where_predicates(self) -> List[str]:
        return self.impl_block.where_predicates


@dataclass(frozen=True)
class DeriveContext:
    """Available context passed to generators deriving an impl for a type."""

    trait_path: str
    all_trait_items: List[Member]
    input: TypeDecl

    @property
    def generics(self) -> List[GenericParam]:
        return self.input.generics

    @property
    def where_predicates(self) -> List[str]:
        return self.input.where_predicates


class Generator:
    """Generates missing members.

    Each ``generate_*`` returns the Rust text of one impl member. The default
    implementations decline the member kind with a capability error.
    """

    name = "generator"

    def generate_const(self, ctx, item: ConstMember) -> str:
        raise UnsupportedItemError(f"{self.name} does not support const items", item.span)

    def generate_fn(self, ctx, item: FnMember) -> str:
        raise UnsupportedItemError(f"{self.name} does not support fn items", item.span)

    def generate_type(self, ctx, item: TypeMember) -> str:
        raise UnsupportedItemError(f"{self.name} does not support type items", item.span)

    def extend_generics(self, ctx, generics_params: List[str], generics_where: List[str]) -> None:
        """Provide additional generic parameters or where-predicates for the impl block."""

    def extend_attrs(self, ctx, attrs: List[str]) -> None:
        """Provide additional attributes for the impl block."""
