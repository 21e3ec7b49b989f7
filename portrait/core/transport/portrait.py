"""Portrait capture and the callable template that transports it.

``capture`` turns a trait declaration into a ``PortraitTemplate``: the
verbatim member texts, a random alias for the template macro and the
companion scope that re-exports the symbols the members refer to.

At an implementation site the template is invoked with the local
arguments. ``invoke`` builds the literal payload (captured members, caller
arguments, the impl block or derive input) and hands it to the filler in
one synchronous call, the same thing the rendered ``macro_rules!`` does
when the Rust compiler expands it.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..ast_parser.models import Span, TraitDecl
from ..ast_parser.utils import to_snake_case
from ..config import PortraitSettings, get_settings
from ..constants import (
    SECTION_ARGS,
    SECTION_DEBUG_PRINT,
    SECTION_IMPL,
    SECTION_INPUT,
    SECTION_TRAIT_PATH,
    SECTION_TRAIT_PORTRAIT,
    TEMPLATE_ALIAS_PREFIX,
)
from ..errors import ArgumentParseError
from ..framework.render import indent
from .imports import ImportCollector

logger = logging.getLogger(__name__)

# A filler entry point: payload text in, synthesized Rust text out
FillerEntry = Callable[[str], str]


@dataclass
class CaptureOptions:
    """Options of the capture step (``#[portrait::make(...)]`` arguments)."""

    name: Optional[str] = None  # companion scope name override
    imports: List[str] = field(default_factory=list)  # explicit use-trees
    auto_imports: bool = False


@dataclass
class CompanionScope:
    """The re-export module accompanying a captured trait.

    Rendered as ``<vis> mod <name> { pub mod imports { <import_vis> use ..; } }``
    next to the trait; implementation sites glob-import ``<name>::imports``.
    """

    name: str
    visibility: str
    import_visibility: str
    imports: List[str] = field(default_factory=list)

    def render(self) -> str:
        uses = [f"{self.import_visibility} use {path};" for path in self.imports]
        imports_body = "\n".join(uses)
        inner = "pub mod imports {\n" + indent(imports_body) + "\n}" if uses else "pub mod imports {}"
        vis = f"{self.visibility} " if self.visibility else ""
        return f"#[allow(non_snake_case)]\n{vis}mod {self.name} {{\n{indent(inner)}\n}}"


def companion_name(trait_name: str, settings: Optional[PortraitSettings] = None) -> str:
    """Deterministic companion scope name: snake-cased trait name plus the suffix."""
    settings = settings or get_settings()
    return to_snake_case(trait_name) + settings.companion_suffix


def import_visibility(visibility: str, span: Optional[Span] = None) -> str:
    """Visibility of the re-exports, two module levels below the trait.

    ``pub`` and absolute scopes carry over unchanged; scopes relative to the
    declaring module are moved up by two levels.

    Raises:
        ArgumentParseError: For a restricted visibility it cannot translate
    """
    vis = re.sub(r"\s+", "", visibility)
    if vis in ("", "pub(self)"):
        return "pub(in super::super)"
    if vis == "pub":
        return "pub"
    if vis == "pub(super)":
        return "pub(in super::super::super)"
    if vis == "pub(crate)" or vis.startswith("pub(in"):
        return visibility.strip()
    raise ArgumentParseError("invalid visibility scope", span)


@dataclass
class PortraitTemplate:
    """A captured portrait: the trait's member declarations, verbatim and in order."""

    trait_name: str
    visibility: str
    alias: str
    items: List[str]
    companion: CompanionScope
    span: Optional[Span] = None

    # =========================================================================
    # Rust-side form
    # =========================================================================

    def render(self) -> str:
        """Render the template macro, its re-export under the trait name and the companion scope."""
        portrait = " ".join(f"{{{item}}}" for item in self.items)
        impl_arm = (
            "(@TARGET {$target_macro:path} @ARGS {$($args:tt)*} @IMPL {$($impl:tt)*} "
            "@DEBUG_PRINT_FILLER_OUTPUT {$debug_print:literal}) => {\n"
            + indent(
                "$target_macro! {\n"
                + indent(
                    f"{SECTION_TRAIT_PORTRAIT} {{ {portrait} }}\n"
                    f"{SECTION_ARGS} {{ $($args)* }}\n"
                    f"{SECTION_IMPL} {{ $($impl)* }}\n"
                    f"{SECTION_DEBUG_PRINT} {{ $debug_print }}"
                )
                + "\n}"
            )
            + "\n};"
        )
        derive_arm = (
            "(@TARGET {$target_macro:path} @TRAIT_PATH {$($trait_path:tt)*} @ARGS {$($args:tt)*} "
            "@INPUT {$($input:tt)*} @DEBUG_PRINT_FILLER_OUTPUT {$debug_print:literal}) => {\n"
            + indent(
                "$target_macro! {\n"
                + indent(
                    f"{SECTION_TRAIT_PORTRAIT} {{ {portrait} }}\n"
                    f"{SECTION_TRAIT_PATH} {{ $($trait_path)* }}\n"
                    f"{SECTION_ARGS} {{ $($args)* }}\n"
                    f"{SECTION_INPUT} {{ $($input)* }}\n"
                    f"{SECTION_DEBUG_PRINT} {{ $debug_print }}"
                )
                + "\n}"
            )
            + "\n};"
        )

        lines = []
        if self.visibility == "pub":
            lines += ["#[doc(hidden)]", "#[macro_export]"]
        lines.append(f"macro_rules! {self.alias} {{")
        lines.append(indent(impl_arm))
        lines.append(indent(derive_arm))
        lines.append("}")
        lines.append("")

        vis = f"{self.visibility} " if self.visibility else ""
        lines.append("#[allow(non_snake_case)]")
        lines.append(f"{vis}use {self.alias} as {self.trait_name};")
        lines.append("")
        lines.append(self.companion.render())
        return "\n".join(lines)

    # =========================================================================
    # Invocation
    # =========================================================================

    def payload(
        self,
        args: str,
        impl_text: Optional[str] = None,
        trait_path: Optional[str] = None,
        input_text: Optional[str] = None,
        debug_print: bool = False,
    ) -> str:
        """Build the literal filler input for one implementation site."""
        if (impl_text is None) == (input_text is None):
            raise ValueError("exactly one of impl_text and input_text is required")
        if input_text is not None and not trait_path:
            raise ValueError("a derive invocation requires the trait path")

        portrait = " ".join(f"{{{item}}}" for item in self.items)
        sections = [f"{SECTION_TRAIT_PORTRAIT} {{ {portrait} }}"]
        if input_text is not None:
            sections.append(f"{SECTION_TRAIT_PATH} {{ {trait_path} }}")
        sections.append(f"{SECTION_ARGS} {{ {args} }}")
        if impl_text is not None:
            sections.append(f"{SECTION_IMPL} {{ {impl_text} }}")
        else:
            sections.append(f"{SECTION_INPUT} {{ {input_text} }}")
        sections.append(f"{SECTION_DEBUG_PRINT} {{ {'true' if debug_print else 'false'} }}")
        return "\n".join(sections)

    def invoke(
        self,
        target: FillerEntry,
        args: str,
        *,
        impl_text: Optional[str] = None,
        trait_path: Optional[str] = None,
        input_text: Optional[str] = None,
        debug_print: bool = False,
    ) -> str:
        """Forward the captured members plus the caller's arguments to ``target``."""
        payload = self.payload(args, impl_text, trait_path, input_text, debug_print)
        logger.debug(f"Invoking portrait of `{self.trait_name}` ({len(self.items)} items)")
        return target(payload)


def capture(
    trait_decl: TraitDecl,
    options: Optional[CaptureOptions] = None,
    settings: Optional[PortraitSettings] = None,
) -> PortraitTemplate:
    """Capture a trait's members into a callable template.

    Member texts are kept as written, attributes included, so a filler
    sees its own ``#[portrait(...)]`` configuration on each member.

    Raises:
        ArgumentParseError: If the trait visibility cannot be translated
    """
    options = options or CaptureOptions()
    settings = settings or get_settings()

    imports = list(options.imports)
    if options.auto_imports:
        collector = ImportCollector(p.name for p in trait_decl.generics)
        collector.visit_members(trait_decl.members)
        imports.extend(f"super::super::{ident}" for ident in collector.idents)

    companion = CompanionScope(
        name=options.name or companion_name(trait_decl.name, settings),
        visibility=trait_decl.visibility,
        import_visibility=import_visibility(trait_decl.visibility, trait_decl.span),
        imports=imports,
    )

    template = PortraitTemplate(
        trait_name=trait_decl.name,
        visibility=trait_decl.visibility,
        alias=f"{TEMPLATE_ALIAS_PREFIX}{uuid.uuid4().hex}",
        items=trait_decl.member_sources,
        companion=companion,
        span=trait_decl.span,
    )
    logger.debug(
        f"Captured portrait of `{trait_decl.name}`: {len(template.items)} items, "
        f"companion `{companion.name}` with {len(imports)} imports"
    )
    return template
