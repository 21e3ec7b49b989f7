"""``#[portrait::fill(filler(args))]``: complete a trait impl block.

Arguments: ``[@OPTION...] filler_path[(filler args)]``. The trait's
template is resolved through the session scope and invoked with the impl
block; the completed impl is scoped in an anonymous const that imports the
trait's companion scope.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..ast_parser import get_parser
from ..ast_parser.models import ImplBlock, Span
from ..config import PortraitSettings, get_settings
from ..errors import ArgumentParseError, PortraitError
from ..generators import FillerRegistry
from ..transport.scope import PortraitScope
from .common import (
    CommandOptions,
    blank_command_attrs,
    default_mod_path,
    item_text,
    parse_filler_call,
    parse_options,
    wrap_const,
)

logger = logging.getLogger(__name__)


@dataclass
class FillAttr:
    """Parsed ``#[portrait::fill(...)]`` arguments."""

    options: CommandOptions
    filler_path: str
    args: str

    @classmethod
    def parse(cls, text: Optional[str], span: Optional[Span] = None) -> "FillAttr":
        options, rest = parse_options(text or "", span)
        filler_path, args = parse_filler_call(rest, span)
        return cls(options=options, filler_path=filler_path, args=args)


def fill(
    attr_args: Optional[str],
    impl: Union[str, ImplBlock],
    scope: PortraitScope,
    module_path: str = "",
    span: Optional[Span] = None,
    settings: Optional[PortraitSettings] = None,
) -> str:
    """Complete an impl block with the named filler.

    Raises:
        ArgumentParseError: For malformed arguments, inherent or negated impls
        UnresolvedPortraitError: If the trait was never captured
        PortraitError: Any failure of the filler, attached to the impl block
    """
    settings = settings or get_settings()

    if isinstance(impl, str):
        block = get_parser().parse_impl(impl)
        text = blank_command_attrs(impl, block.attrs, "fill", settings).strip()
    else:
        block = impl
        text = item_text(block.attrs, block.source, "fill", settings)

    if block.trait_path is None:
        raise ArgumentParseError("#[fill] can only be used on trait impl blocks", block.span)
    if block.negated:
        raise ArgumentParseError("#[fill] cannot be used on negated trait impl", block.span)

    attr = FillAttr.parse(attr_args, span)
    filler = FillerRegistry.resolve(attr.filler_path, "impl", span)
    template = scope.resolve(block.trait_path, module_path, span)
    mod_path = attr.options.mod_path or default_mod_path(block.trait_path, settings)

    try:
        completed = template.invoke(
            filler.entry,
            attr.args,
            impl_text=text,
            debug_print=attr.options.debug_print_filler_output or settings.debug_print,
        )
    except PortraitError as e:
        # positions inside the payload mean nothing in the source file
        e.span = span
        raise

    output = wrap_const(mod_path, completed)
    if attr.options.debug_print:
        logger.info(f"#[{settings.attribute_path('fill')}] output:\n{output}")
    return output
