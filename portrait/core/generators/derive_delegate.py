"""``derive_delegate`` filler: implement a trait by delegating to every field.

For a struct, each function calls the same trait function once per field
and combines the results; for an enum, the receiver is matched and the
same is done for the fields of the active variant.

Combining per-field results (first rule that applies):

1. one field: its result is returned as is
2. ``()`` return type: every call is evaluated for effect
3. ``Self`` return type: a new value is built from the per-field results
4. ``#[portrait(derive_delegate(reduce = f))]``: results are folded with ``f``,
   starting from ``reduce_base`` if given, else from the first result
5. otherwise the function cannot be derived

``#[portrait(derive_delegate(try))]`` propagates failures with ``?`` and
wraps the combined value in ``Ok`` (or the constructor given as
``try = Some``); the rules above then apply to the ``T`` of ``R<T, ..>``.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..ast_parser.models import ConstMember, Field, FnMember, Param, TypeDecl, TypeMember
from ..ast_parser.utils import normalize_type, split_top_level
from ..constants import OTHER_FIELD_BINDING, SELF_FIELD_PREFIX
from ..errors import AggregationError, ArgumentParseError, ShapeRestrictionError, UnsupportedItemError
from ..framework.args import NoArgs, Once, ParseArgs, parse_grouped_attr
from ..framework.filler import completer_derive_filler
from ..framework.generator import DeriveContext, Generator
from ..framework.render import render_block, render_fn

logger = logging.getLogger(__name__)

_SELF_TY_RE = re.compile(r"(?:&\s*(?:'\w+\s*)?(?:mut\s+)?)*Self")


class FnArgs(ParseArgs):
    """Per-function configuration from ``#[portrait(derive_delegate(...))]``."""

    KEYS = ("reduce", "reduce_base", "try")

    def __init__(self) -> None:
        self.reduce: Once[str] = Once()
        self.reduce_base: Once[str] = Once()
        self.with_try: Once[Optional[str]] = Once()

    def parse_once(self, key, value, group, span) -> None:
        if group is not None:
            raise ArgumentParseError(f"unexpected `(...)` after `{key}`", span)
        if key == "try":
            self.with_try.set(value, span)
            return
        if value is None:
            raise ArgumentParseError(f"expected `{key} = <expr>`", span)
        if key == "reduce":
            self.reduce.set(value, span)
        else:
            self.reduce_base.set(value, span)


def is_self_ty(ty: Optional[str]) -> bool:
    """``Self`` or a (possibly nested) reference to it."""
    return bool(ty) and _SELF_TY_RE.fullmatch(ty.strip()) is not None


def trait_fn_path(trait_path: str, fn_name: str) -> str:
    """Path of a trait function in expression position (``Foo<T>`` becomes ``Foo::<T>``)."""
    path = trait_path.strip()
    idx = path.find("<")
    if idx > 0 and not path[:idx].rstrip().endswith("::"):
        path = path[:idx].rstrip() + "::" + path[idx:]
    return f"{path}::{fn_name}"


def try_payload_type(ret: str, span=None) -> str:
    """``T`` of a ``R<T, ...>`` return type."""
    error = AggregationError(
        "`try` must be used with a type in the form `R<T, ...>` where `R` is a Try type "
        "e.g. `Result`/`Option`.",
        span,
    )
    text = ret.strip()
    idx = text.find("<")
    if idx <= 0 or not text.endswith(">") or text.startswith(("(", "&", "[", "<")):
        raise error
    args = split_top_level(text[idx + 1:-1], ",", angle=True)
    if not args or args[0].startswith("'"):
        raise error
    return args[0]


def _field_binding(index: int) -> str:
    return f"{SELF_FIELD_PREFIX}{index}"


def _cfg_prefix(field: Field) -> str:
    return "".join(f"{a.source} " for a in field.attrs if a.is_ident("cfg"))


def _field_pattern(fields: List[Field], rest: bool) -> str:
    entries = [f"{_cfg_prefix(f)}{f.member}: {_field_binding(f.index)}" for f in fields]
    if rest:
        entries.append("..")
    return "{ " + ", ".join(entries) + " }" if entries else "{}"


class DeriveDelegateGenerator(Generator):
    name = "derive_delegate"

    def __init__(self, args: Optional[NoArgs] = None):
        self.args = args or NoArgs()

    @classmethod
    def from_args(cls, text: str) -> "DeriveDelegateGenerator":
        return cls(NoArgs.parse(text))

    def generate_const(self, ctx, item: ConstMember) -> str:
        raise UnsupportedItemError(f"{self.name} does not support const items", item.span)

    def generate_type(self, ctx, item: TypeMember) -> str:
        raise UnsupportedItemError(f"{self.name} does not support type items", item.span)

    def generate_fn(self, ctx: DeriveContext, item: FnMember) -> str:
        fn_args = parse_grouped_attr(item.attrs, "derive_delegate", FnArgs)

        ret = item.sig.return_type or "()"
        if fn_args.with_try.is_set:
            output_ty = try_payload_type(ret, item.span)
        else:
            output_ty = ret

        input = ctx.input
        if input.kind == "struct":
            stmts = self._transform_struct(ctx.trait_path, item, fn_args, output_ty, input)
        elif input.kind == "enum":
            stmts = self._transform_enum(ctx.trait_path, item, fn_args, output_ty, input)
        else:
            raise UnsupportedItemError(f"{self.name} does not support unions", input.span)

        if fn_args.with_try.is_set:
            ctor = fn_args.with_try.try_get() or "Ok"
            stmts = [f"{ctor}({render_block(stmts)})"]

        attrs = [a.source for a in item.cfg_attrs]
        return render_fn(attrs, item.sig.render(), stmts)

    def extend_generics(self, ctx: DeriveContext, generics_params: List[str], generics_where: List[str]) -> None:
        """Require every field type to implement the trait when the input is generic."""
        if not ctx.input.generics:
            return

        if ctx.input.kind == "enum":
            fields = [f for variant in ctx.input.variants for f in variant.fields]
        else:
            fields = ctx.input.fields

        seen = {normalize_type(p) for p in generics_where}
        for f in fields:
            predicate = f"{f.ty}: {ctx.trait_path}"
            if normalize_type(predicate) not in seen:
                seen.add(normalize_type(predicate))
                generics_where.append(predicate)

    # =========================================================================
    # Shapes
    # =========================================================================

    def _transform_struct(
        self, trait_path: str, item: FnMember, fn_args: FnArgs, output_ty: str, input: TypeDecl
    ) -> List[str]:
        stmts: List[str] = []
        if item.sig.receiver() is not None:
            stmts.append(f"let Self {_field_pattern(input.fields, rest=False)} = self;")
        stmts.extend(
            self._transform_return(trait_path, item, fn_args, output_ty, input.fields, "Self", refutable=False)
        )
        return stmts

    def _transform_enum(
        self, trait_path: str, item: FnMember, fn_args: FnArgs, output_ty: str, input: TypeDecl
    ) -> List[str]:
        if item.sig.receiver() is None:
            raise ShapeRestrictionError(
                "Cannot derive enum delegates for associated functions without receivers", item.span
            )

        arms: List[str] = []
        for variant in input.variants:
            ctor = f"Self::{variant.name}"
            arm_stmts = self._transform_return(
                trait_path, item, fn_args, output_ty, variant.fields, ctor, refutable=True
            )
            cfg = "".join(f"{a.source}\n" for a in variant.attrs if a.is_ident("cfg"))
            arms.append(f"{cfg}{ctor} {_field_pattern(variant.fields, rest=True)} => {render_block(arm_stmts)},")

        return [f"match self {render_block(arms)}"]

    # =========================================================================
    # Aggregation
    # =========================================================================

    def _transform_return(
        self,
        trait_path: str,
        item: FnMember,
        fn_args: FnArgs,
        output_ty: str,
        fields: List[Field],
        ctor_path: str,
        refutable: bool,
    ) -> List[str]:
        calls = self._field_calls(trait_path, item, fn_args, fields, ctor_path, refutable)

        if len(calls) == 1:
            return [calls[0][0]]

        ty = normalize_type(output_ty)
        if ty == "()":
            return [f"{_cfg_prefix(f)}{expr};" for expr, f in calls]

        if ty == "Self":
            entries = [f"{_cfg_prefix(f)}{f.member}: {expr}" for expr, f in calls]
            body = "{ " + ", ".join(entries) + " }" if entries else "{}"
            return [f"{ctor_path} {body}"]

        reduce_fn = fn_args.reduce.try_get()
        if reduce_fn is not None:
            exprs = [expr for expr, _ in calls]
            base = fn_args.reduce_base.try_get()
            if base is None:
                if not exprs:
                    raise AggregationError(
                        f"{self.name}(reduce) is not applicable for empty structs without reduce_base",
                        item.span,
                    )
                acc, exprs = exprs[0], exprs[1:]
            else:
                acc = base
            for expr in exprs:
                acc = f"({reduce_fn})({acc}, {expr})"
            return [acc]

        raise AggregationError(
            f"Cannot determine how to aggregate the return value `{output_ty}`. Supported return types "
            "are `()`, `Self` or arbitrary types with the `#[portrait(derive_delegate(reduce = _))]` "
            "attribute, or `Option<>`/`Result<>` wrapping them with `#[portrait(derive_delegate(try))]`.",
            item.span,
        )

    def _field_calls(
        self,
        trait_path: str,
        item: FnMember,
        fn_args: FnArgs,
        fields: List[Field],
        ctor_path: str,
        refutable: bool,
    ) -> List[Tuple[str, Field]]:
        func = trait_fn_path(trait_path, item.name)
        suffix = "?" if fn_args.with_try.is_set else ""

        calls = []
        for f in fields:
            args = [self._transform_arg(param, f, ctor_path, refutable, item) for param in item.sig.params]
            calls.append((f"{func}({', '.join(args)}){suffix}", f))
        return calls

    def _transform_arg(self, param: Param, field: Field, ctor_path: str, refutable: bool, item: FnMember) -> str:
        if param.is_receiver:
            return _field_binding(field.index)

        ident = param.ident
        if ident is None:
            raise ArgumentParseError(
                "Cannot derive delegate for traits with non-identifier-pattern parameters", item.span
            )

        if is_self_ty(param.ty):
            if refutable:
                raise ShapeRestrictionError("Non-receiver Self parameters are only supported for structs", item.span)
            return f"{{ let {ctor_path} {{ {field.member}: {OTHER_FIELD_BINDING}, .. }} = {ident}; {OTHER_FIELD_BINDING} }}"

        return ident


def derive_delegate(payload: str) -> str:
    """Derive filler entry point."""
    return completer_derive_filler(payload, DeriveDelegateGenerator.from_args)
