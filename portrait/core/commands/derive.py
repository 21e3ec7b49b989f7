"""``#[portrait::derive(Trait with filler(args))]``: implement a trait for a type.

Arguments: ``[@OPTION...] trait_path with filler_path[(filler args)]``.
The type declaration is emitted again with its ``#[portrait(...)]`` helper
attributes neutralized, followed by the generated impl.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from ..ast_parser import get_parser
from ..ast_parser.models import Span, TypeDecl
from ..config import PortraitSettings, get_settings
from ..errors import ArgumentParseError, PortraitError
from ..framework.args import strip_attr
from ..generators import FillerRegistry
from ..transport.scope import PortraitScope
from .common import (
    CommandOptions,
    blank_command_attrs,
    default_mod_path,
    item_text,
    parse_filler_call,
    parse_options,
    take_generic_path,
    wrap_const,
)

logger = logging.getLogger(__name__)

_WITH_RE = re.compile(r"with\b")


@dataclass
class DeriveAttr:
    """Parsed ``#[portrait::derive(...)]`` arguments."""

    options: CommandOptions
    trait_path: str
    filler_path: str
    args: str

    @classmethod
    def parse(cls, text: Optional[str], span: Optional[Span] = None) -> "DeriveAttr":
        options, rest = parse_options(text or "", span)

        trait_path, rest = take_generic_path(rest)
        if not trait_path:
            raise ArgumentParseError("expected `Trait with filler(args)`", span)

        match = _WITH_RE.match(rest)
        if not match:
            raise ArgumentParseError(f"expected `with` after `{trait_path}`", span)

        filler_path, args = parse_filler_call(rest[match.end():], span)
        return cls(options=options, trait_path=trait_path, filler_path=filler_path, args=args)


def derive(
    attr_args: Optional[str],
    input: Union[str, TypeDecl],
    scope: PortraitScope,
    module_path: str = "",
    span: Optional[Span] = None,
    settings: Optional[PortraitSettings] = None,
) -> str:
    """Generate a trait impl for a struct/enum with the named derive filler.

    Raises:
        ArgumentParseError: For malformed arguments
        UnresolvedPortraitError: If the trait was never captured
        PortraitError: Any failure of the filler, attached to the type declaration
    """
    return derive_all([attr_args], input, scope, module_path, span, settings)


def derive_all(
    attr_args_list: List[Optional[str]],
    input: Union[str, TypeDecl],
    scope: PortraitScope,
    module_path: str = "",
    span: Optional[Span] = None,
    settings: Optional[PortraitSettings] = None,
) -> str:
    """Like ``derive`` for a declaration carrying several derive attributes.

    The declaration is emitted once, followed by one impl per attribute.
    """
    settings = settings or get_settings()

    if isinstance(input, str):
        decl = get_parser().parse_type_decl(input)
        text = blank_command_attrs(input, decl.attrs, "derive", settings).strip()
    else:
        decl = input
        text = item_text(decl.attrs, decl.source, "derive", settings)

    parts = [strip_attr(text, settings.attribute_namespace)]
    for attr_args in attr_args_list:
        parts.append(_derive_one(attr_args, text, scope, module_path, span, settings))

    output = "\n\n".join(parts)
    logger.debug(f"Derived {len(attr_args_list)} impl(s) for `{decl.name}`")
    return output


def _derive_one(
    attr_args: Optional[str],
    text: str,
    scope: PortraitScope,
    module_path: str,
    span: Optional[Span],
    settings: PortraitSettings,
) -> str:
    attr = DeriveAttr.parse(attr_args, span)
    filler = FillerRegistry.resolve(attr.filler_path, "derive", span)
    template = scope.resolve(attr.trait_path, module_path, span)
    mod_path = attr.options.mod_path or default_mod_path(attr.trait_path, settings)

    try:
        generated = template.invoke(
            filler.entry,
            attr.args,
            trait_path=attr.trait_path,
            input_text=text,
            debug_print=attr.options.debug_print_filler_output or settings.debug_print,
        )
    except PortraitError as e:
        # positions inside the payload mean nothing in the source file
        e.span = span
        raise

    output = wrap_const(mod_path, generated)
    if attr.options.debug_print:
        logger.info(f"#[{settings.attribute_path('derive')}] output:\n{output}")
    return output
