"""``delegate`` filler: forward every member to the same trait on another type.

Arguments are ``Type`` or ``Type; value_expr``. The value expression stands
in for the receiver, so ``delegate(String; self.name)`` forwards
``fn len(&self)`` as ``<String as Trait>::len(&self.name)``.
"""

from dataclasses import dataclass
from typing import Optional

from ..ast_parser.models import ConstMember, FnMember, Param, TypeMember
from ..ast_parser.utils import split_top_level
from ..errors import ArgumentParseError, UnsupportedItemError
from ..framework.filler import completer_impl_filler
from ..framework.generator import Generator
from ..framework.render import render_attrs, render_fn


@dataclass
class DelegateArgs:
    ty: str
    value: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "DelegateArgs":
        parts = split_top_level(text or "", ";", angle=True)
        if not parts:
            raise ArgumentParseError("expected the delegate type, e.g. `delegate(String; self.inner)`")
        if len(parts) > 2:
            raise ArgumentParseError(f"unexpected tokens after the delegate value: `{'; '.join(parts[2:])}`")
        return cls(ty=parts[0], value=parts[1] if len(parts) == 2 else None)


class DelegateGenerator(Generator):
    name = "portrait::delegate"

    def __init__(self, args: DelegateArgs):
        self.args = args

    @classmethod
    def from_args(cls, text: str) -> "DelegateGenerator":
        return cls(DelegateArgs.parse(text))

    def _qualified(self, ctx) -> str:
        return f"<{self.args.ty} as {ctx.trait_path}>"

    def generate_const(self, ctx, item: ConstMember) -> str:
        attrs = [a.source for a in item.cfg_attrs]
        return render_attrs(attrs) + f"const {item.name}: {item.ty} = {self._qualified(ctx)}::{item.name};"

    def generate_fn(self, ctx, item: FnMember) -> str:
        args = [self._forward_arg(param, item) for param in item.sig.params]
        attrs = [a.source for a in item.cfg_attrs] + ["#[inline]"]
        call = f"{self._qualified(ctx)}::{item.name}({', '.join(args)})"
        return render_fn(attrs, item.sig.render(), [call])

    def _forward_arg(self, param: Param, item: FnMember) -> str:
        cfg = "".join(f"{a.source} " for a in param.attrs if a.is_ident("cfg"))

        if param.is_receiver:
            if self.args.value is None:
                raise UnsupportedItemError(
                    "Delegate value must be passed to implement traits with references", item.span
                )
            if param.pattern is not None:
                # typed receiver such as `self: Box<Self>`; the value must have the receiver type
                return cfg + self.args.value
            ref = "&" if param.reference else ""
            mut = "mut " if param.reference and param.mutable else ""
            return f"{cfg}{ref}{mut}{self.args.value}"

        # `mut` belongs to the binding, not to the argument
        return cfg + (param.pattern or "")

    def generate_type(self, ctx, item: TypeMember) -> str:
        params = item.param_names
        args = f"<{', '.join(params)}>" if params else ""
        value = f"{self._qualified(ctx)}::{item.name}{args}"
        where = f" {item.where_clause}" if item.where_clause else ""
        attrs = [a.source for a in item.cfg_attrs]
        return render_attrs(attrs) + f"type {item.name}{item.generics} = {value}{where};"


def delegate(payload: str) -> str:
    """Impl filler entry point."""
    return completer_impl_filler(payload, DelegateGenerator.from_args)
