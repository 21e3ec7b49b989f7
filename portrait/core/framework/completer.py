"""Completion engine: subtract provided members, fill the rest, assemble the impl.

``complete_impl`` completes a partial ``impl Trait for Type`` block;
``complete_derive`` builds a brand-new impl for a struct/enum/union.
Both dispatch every member still missing to the generator, in trait
declaration order, then let the generator extend the where clause and
attributes once. A generator failure propagates and nothing is emitted.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Union

from ..ast_parser.models import ImplBlock, Member, MemberKind, TypeDecl, cfg_attrs
from .generator import DeriveContext, Generator, ImplContext
from .item_map import subtract_items
from .render import indent, render_attrs, render_where

logger = logging.getLogger(__name__)


@dataclass
class ImplOutput:
    """A completed impl block, ready to be rendered as Rust text."""

    header: str  # "impl<T> Foo for Bar<T>" (no where clause)
    attrs: List[str] = field(default_factory=list)
    where_predicates: List[str] = field(default_factory=list)
    provided: str = ""  # verbatim body of the user's impl block
    generated: List[str] = field(default_factory=list)

    def render(self) -> str:
        where = render_where(self.where_predicates)
        lines = [self.header + where + ("\n{" if where else " {")]

        provided = self.provided.strip("\n").rstrip()
        if provided.strip():
            lines.append(provided)
        for item in self.generated:
            lines.append(indent(item))
        lines.append("}")

        return render_attrs(self.attrs) + "\n".join(lines)


def generate_member(generator: Generator, ctx: Union[ImplContext, DeriveContext], member: Member) -> str:
    """Dispatch one trait member to the generator function for its kind."""
    logger.debug(f"Generating {member.kind.value} `{member.name}` with {generator.name}")
    if member.kind is MemberKind.CONST:
        return generator.generate_const(ctx, member)
    if member.kind is MemberKind.FN:
        return generator.generate_fn(ctx, member)
    return generator.generate_type(ctx, member)


def complete_impl(trait_items: List[Member], impl_block: ImplBlock, generator: Generator) -> ImplOutput:
    """Invoke the generator on each unimplemented member and return the completed impl block.

    Provided members are kept verbatim; generated ones follow them in
    trait declaration order.

    Raises:
        UnknownMemberError: If the impl provides a member absent from the trait
        PortraitError: Any failure raised by the generator
    """
    ctx = ImplContext(all_trait_items=trait_items, impl_block=impl_block)

    items = subtract_items(trait_items, impl_block)
    generated = [generate_member(generator, ctx, member) for member in items.unimplemented(trait_items)]

    params = [param.source for param in impl_block.generics]
    original_params = list(params)
    where = list(impl_block.where_predicates)
    generator.extend_generics(ctx, params, where)

    attrs = [attr.source for attr in impl_block.attrs]
    generator.extend_attrs(ctx, attrs)

    header = impl_block.header
    if params != original_params:
        header = _replace_impl_generics(header, impl_block.type_parameters, params)

    return ImplOutput(
        header=header,
        attrs=attrs,
        where_predicates=where,
        provided=impl_block.body_inner,
        generated=generated,
    )


def complete_derive(
    trait_path: str,
    trait_items: List[Member],
    input: TypeDecl,
    generator: Generator,
) -> ImplOutput:
    """Invoke the generator on every trait member and return a new impl block for ``input``.

    The impl takes the input's generic parameters (defaults removed), its
    where-predicates and its ``#[cfg]`` attributes.
    """
    ctx = DeriveContext(trait_path=trait_path, all_trait_items=trait_items, input=input)

    generated = [generate_member(generator, ctx, member) for member in trait_items]

    params = [param.without_default for param in input.generics]
    where = list(input.where_predicates)
    generator.extend_generics(ctx, params, where)

    attrs = [attr.source for attr in cfg_attrs(input.attrs)]
    generator.extend_attrs(ctx, attrs)

    generics = f"<{', '.join(params)}>" if params else ""
    return ImplOutput(
        header=f"impl{generics} {trait_path} for {input.self_ty}",
        attrs=attrs,
        where_predicates=where,
        generated=generated,
    )


def _replace_impl_generics(header: str, type_parameters: str, params: List[str]) -> str:
    generics = f"<{', '.join(params)}>"
    if type_parameters:
        return header.replace(type_parameters, generics, 1)
    return re.sub(r"\bimpl\b", f"impl{generics}", header, count=1)
