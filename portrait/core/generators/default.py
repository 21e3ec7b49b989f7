"""``default`` filler: every missing member returns ``Default::default()``."""

from typing import Optional

from ..ast_parser.models import ConstMember, FnMember, TypeMember, render_param
from ..errors import UnsupportedItemError
from ..framework.args import NoArgs
from ..framework.filler import completer_impl_filler
from ..framework.generator import Generator
from ..framework.render import render_attrs, render_fn

_ALLOW_UNUSED = "#[allow(unused_variables)]"


class DefaultGenerator(Generator):
    name = "portrait::default"

    def __init__(self, args: Optional[NoArgs] = None):
        self.args = args or NoArgs()

    @classmethod
    def from_args(cls, text: str) -> "DefaultGenerator":
        return cls(NoArgs.parse(text))

    def generate_const(self, ctx, item: ConstMember) -> str:
        attrs = [a.source for a in item.cfg_attrs]
        return render_attrs(attrs) + f"const {item.name}: {item.ty} = Default::default();"

    def generate_fn(self, ctx, item: FnMember) -> str:
        # typed parameters are never read
        params = [
            render_param(p) if p.is_receiver else render_param(p, [_ALLOW_UNUSED])
            for p in item.sig.params
        ]
        attrs = [a.source for a in item.cfg_attrs]
        return render_fn(attrs, item.sig.render(params), ["Default::default()"])

    def generate_type(self, ctx, item: TypeMember) -> str:
        raise UnsupportedItemError(f"{self.name} cannot implement associated types automatically", item.span)


def default(payload: str) -> str:
    """Impl filler entry point."""
    return completer_impl_filler(payload, DefaultGenerator.from_args)
