"""``#[portrait::make]``: capture a trait so that it can be filled elsewhere.

The trait is emitted again (with ``#[portrait(...)]`` helper attributes
neutralized), followed by the template macro, its re-export under the
trait's name and the companion scope.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from ..ast_parser import get_parser
from ..ast_parser.models import Span, TraitDecl
from ..ast_parser.utils import is_ident, split_top_level
from ..config import PortraitSettings, get_settings
from ..errors import ArgumentParseError
from ..framework.args import Once, ParseArgs, strip_attr
from ..transport.portrait import CaptureOptions, CompanionScope, PortraitTemplate, capture
from ..transport.scope import PortraitScope
from .common import blank_command_attrs, item_text

logger = logging.getLogger(__name__)


class ItemArgs(ParseArgs):
    """Arguments of ``#[portrait::make(...)]``."""

    KEYS = ("__debug_print", "name", "import", "auto_imports")

    def __init__(self) -> None:
        self.debug_print: Once[bool] = Once()
        self.name: Once[str] = Once()
        self.imports: List[str] = []
        self.auto_imports: Once[bool] = Once()

    def parse_once(self, key, value, group, span) -> None:
        if key == "import":
            if group is None:
                raise ArgumentParseError("expected `import(path, ...)`", span)
            self.imports.extend(split_top_level(group, ","))
            return

        if key == "name":
            if value is None or not is_ident(value):
                raise ArgumentParseError("expected `name = <identifier>`", span)
            self.name.set(value, span)
            return

        if value is not None or group is not None:
            raise ArgumentParseError(f"`{key}` takes no value", span)
        if key == "__debug_print":
            self.debug_print.set(True, span)
        else:
            self.auto_imports.set(True, span)

    def capture_options(self) -> CaptureOptions:
        return CaptureOptions(
            name=self.name.try_get(),
            imports=list(self.imports),
            auto_imports=self.auto_imports.get_or(False),
        )


@dataclass
class MakeOutput:
    """Result of the capture step."""

    original_decl: str
    companion_scope: CompanionScope
    capture_template: PortraitTemplate

    def render(self) -> str:
        return f"{self.original_decl}\n\n{self.capture_template.render()}"


def make(
    attr_args: Optional[str],
    trait: Union[str, TraitDecl],
    scope: Optional[PortraitScope] = None,
    module_path: str = "",
    span: Optional[Span] = None,
    settings: Optional[PortraitSettings] = None,
) -> MakeOutput:
    """Capture a trait declaration.

    Args:
        attr_args: Text inside ``#[portrait::make(...)]``
        trait: The trait item text (or an already parsed declaration)
        scope: Session scope the template is registered in
        module_path: Module the trait is declared in
        span: Location of the command attribute, for diagnostics

    Raises:
        ArgumentParseError: For malformed arguments or a trait name captured twice
    """
    settings = settings or get_settings()
    args = ItemArgs.parse(attr_args, span)

    if isinstance(trait, str):
        decl = get_parser().parse_trait(trait)
        text = blank_command_attrs(trait, decl.attrs, "make", settings).strip()
    else:
        decl = trait
        text = item_text(decl.attrs, decl.source, "make", settings)

    template = capture(decl, args.capture_options(), settings)
    if scope is not None:
        scope.add(template, module_path)

    output = MakeOutput(
        original_decl=strip_attr(text, settings.attribute_namespace),
        companion_scope=template.companion,
        capture_template=template,
    )
    if args.debug_print.get_or(False):
        logger.info(f"#[{settings.attribute_path('make')}] output:\n{output.render()}")
    return output
