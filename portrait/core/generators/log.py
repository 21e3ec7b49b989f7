"""``log`` filler: every missing function calls a formatting macro with its arguments.

Arguments: ``logger_path[ -> RetTy][, leading_args...]``. A function
``fn f(&self, a: i32, b: &str)`` filled with ``log(println)`` becomes
``println!("f({:?}, {:?})", a, b)``; leading arguments (a log target, a
writer) are inserted before the format string.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..ast_parser.models import Attribute, ConstMember, FnMember, TypeMember
from ..ast_parser.utils import split_top_level, take_path
from ..errors import ArgumentParseError, UnsupportedItemError
from ..framework.filler import completer_impl_filler
from ..framework.generator import Generator
from ..framework.render import render_attrs, render_fn

_CFG_DISABLED = '::portrait::DummyDebug { text: "(cfg disabled)" }'


@dataclass
class LogArgs:
    logger: str
    ret_ty: Optional[str] = None
    args: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "LogArgs":
        logger_path, rest = take_path(text or "")
        if not logger_path:
            raise ArgumentParseError("expected the logger macro path, e.g. `log(println)`")

        ret_ty = None
        args: List[str] = []
        if rest.startswith("->"):
            parts = split_top_level(rest[2:], ",", angle=True)
            if not parts:
                raise ArgumentParseError("expected a type after `->`")
            ret_ty = parts[0]
            args = parts[1:]
        elif rest.startswith(","):
            args = split_top_level(rest[1:], ",")
        elif rest:
            raise ArgumentParseError(f"unexpected tokens after the logger path: `{rest}`")

        return cls(logger=logger_path, ret_ty=ret_ty, args=args)


def _guarded(expr: str, cfgs: List[Attribute]) -> str:
    """Substitute a placeholder when the parameter is compiled out."""
    conditions = ", ".join(a.args or "" for a in cfgs)
    return (
        f"{{ #[cfg(all({conditions}))] {{ {expr} }} "
        f"#[cfg(not(all({conditions})))] {{ {_CFG_DISABLED} }} }}"
    )


class LogGenerator(Generator):
    name = "portrait::log"

    def __init__(self, args: LogArgs):
        self.args = args

    @classmethod
    def from_args(cls, text: str) -> "LogGenerator":
        return cls(LogArgs.parse(text))

    def generate_const(self, ctx, item: ConstMember) -> str:
        raise UnsupportedItemError(f"{self.name} cannot implement associated constants automatically", item.span)

    def generate_fn(self, ctx, item: FnMember) -> str:
        fmt_args = []
        for param in item.sig.params:
            if param.is_receiver:
                continue
            expr = param.pattern or ""
            cfgs = [a for a in param.attrs if a.is_ident("cfg")]
            fmt_args.append(_guarded(expr, cfgs) if cfgs else expr)

        fmt_string = f'"{item.name}({", ".join("{:?}" for _ in fmt_args)})"'
        macro_args = list(self.args.args) + [fmt_string] + fmt_args
        call = f"{self.args.logger}!({', '.join(macro_args)})"

        attrs = [a.source for a in item.cfg_attrs]
        return render_fn(attrs, item.sig.render(), [call])

    def generate_type(self, ctx, item: TypeMember) -> str:
        ty = self.args.ret_ty or "()"
        attrs = [a.source for a in item.cfg_attrs]
        return render_attrs(attrs) + f"type {item.name}{item.generics} = {ty};"


def log(payload: str) -> str:
    """Impl filler entry point."""
    return completer_impl_filler(payload, LogGenerator.from_args)
