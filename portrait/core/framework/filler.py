"""Filler entry points: decode a template payload and hand it to a filler.

A payload is what a captured portrait template delivers at an
implementation site, in one piece::

    TRAIT_PORTRAIT { {<member>} {<member>} ... }
    [TRAIT_PATH { <path> }]
    ARGS { <generator arguments> }
    IMPL { <impl block> }  |  INPUT { <struct/enum> }
    DEBUG_PRINT_FILLER_OUTPUT { true|false }

``impl_filler``/``derive_filler`` parse it and call a filler with the
decoded pieces; ``completer_impl_filler``/``completer_derive_filler`` are
the shorthand for fillers that are just a generator run through the
completion engine.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..ast_parser import get_parser
from ..ast_parser.models import ImplBlock, Member, TypeDecl
from ..ast_parser.utils import matching_close
from ..constants import (
    SECTION_ARGS,
    SECTION_DEBUG_PRINT,
    SECTION_IMPL,
    SECTION_INPUT,
    SECTION_TRAIT_PATH,
    SECTION_TRAIT_PORTRAIT,
)
from ..errors import ArgumentParseError
from .completer import complete_derive, complete_impl
from .generator import Generator

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"[A-Z_]+")

IMPL_SECTIONS = (SECTION_TRAIT_PORTRAIT, SECTION_ARGS, SECTION_IMPL, SECTION_DEBUG_PRINT)
DERIVE_SECTIONS = (SECTION_TRAIT_PORTRAIT, SECTION_TRAIT_PATH, SECTION_ARGS, SECTION_INPUT, SECTION_DEBUG_PRINT)


@dataclass
class FillerInput:
    """Decoded payload."""

    portrait: List[Member]
    args: str
    debug_print: bool
    item_impl: Optional[ImplBlock] = None
    trait_path: Optional[str] = None
    input: Optional[TypeDecl] = None


class ImplFiller(ABC):
    """Determines how to fill an impl block."""

    @abstractmethod
    def fill(self, portrait: List[Member], args: str, item_impl: ImplBlock) -> str:
        """Complete the impl given a portrait of the trait members."""
        ...


class DeriveFiller(ABC):
    """Determines how to derive an impl."""

    @abstractmethod
    def fill(self, trait_path: str, portrait: List[Member], args: str, input: TypeDecl) -> str:
        """Derive the impl given a portrait of the trait members and the derived type."""
        ...


# =========================================================================
# Payload decoding
# =========================================================================


def split_sections(payload: str, expected: tuple) -> Dict[str, str]:
    """Split ``KEYWORD { ... }`` sections, requiring exactly ``expected`` in order."""
    sections: Dict[str, str] = {}
    pos = 0
    text = payload

    for keyword in expected:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        match = _KEYWORD_RE.match(text, pos)
        if not match or match.group(0) != keyword:
            found = match.group(0) if match else text[pos:pos + 20]
            raise ArgumentParseError(f"expected `{keyword}` in filler input, found `{found}`")
        pos = match.end()

        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text) or text[pos] != "{":
            raise ArgumentParseError(f"expected `{{` after `{keyword}`")
        try:
            close = matching_close(text, pos)
        except ValueError as e:
            raise ArgumentParseError(str(e)) from e
        sections[keyword] = text[pos + 1:close]
        pos = close + 1

    if text[pos:].strip():
        raise ArgumentParseError("trailing tokens in filler input")
    return sections


def split_portrait_items(text: str) -> List[str]:
    """Split the TRAIT_PORTRAIT section into the verbatim member texts."""
    items: List[str] = []
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return items
        if text[pos] != "{":
            raise ArgumentParseError("each trait item in the portrait must be wrapped in braces")
        try:
            close = matching_close(text, pos)
        except ValueError as e:
            raise ArgumentParseError(str(e)) from e
        items.append(text[pos + 1:close])
        pos = close + 1


def _parse_bool(text: str) -> bool:
    value = text.strip()
    if value not in ("true", "false"):
        raise ArgumentParseError(f"expected `true` or `false`, found `{value}`")
    return value == "true"


def parse_impl_payload(payload: str) -> FillerInput:
    sections = split_sections(payload, IMPL_SECTIONS)
    parser = get_parser()
    return FillerInput(
        portrait=parser.parse_trait_items(split_portrait_items(sections[SECTION_TRAIT_PORTRAIT])),
        args=sections[SECTION_ARGS].strip(),
        item_impl=parser.parse_impl(sections[SECTION_IMPL]),
        debug_print=_parse_bool(sections[SECTION_DEBUG_PRINT]),
    )


def parse_derive_payload(payload: str) -> FillerInput:
    sections = split_sections(payload, DERIVE_SECTIONS)
    parser = get_parser()
    trait_path = sections[SECTION_TRAIT_PATH].strip()
    if not trait_path:
        raise ArgumentParseError("trait path not fully parsed")
    return FillerInput(
        portrait=parser.parse_trait_items(split_portrait_items(sections[SECTION_TRAIT_PORTRAIT])),
        args=sections[SECTION_ARGS].strip(),
        trait_path=trait_path,
        input=parser.parse_type_decl(sections[SECTION_INPUT]),
        debug_print=_parse_bool(sections[SECTION_DEBUG_PRINT]),
    )


# =========================================================================
# Entry points
# =========================================================================


def impl_filler(payload: str, filler: ImplFiller) -> str:
    """Parse the payload directly and pass the pieces to the filler.

    Use this if a filler needs all implemented/unimplemented members at the
    same time; if it just maps each missing member to an impl member, use
    ``completer_impl_filler``.
    """
    decoded = parse_impl_payload(payload)
    output = filler.fill(decoded.portrait, decoded.args, decoded.item_impl)
    if decoded.debug_print:
        logger.info(f"Filler output:\n{output}")
    return output


def derive_filler(payload: str, filler: DeriveFiller) -> str:
    """Parse the payload directly and pass the pieces to the filler."""
    decoded = parse_derive_payload(payload)
    output = filler.fill(decoded.trait_path, decoded.portrait, decoded.args, decoded.input)
    if decoded.debug_print:
        logger.info(f"Filler output:\n{output}")
    return output


class _CompleterImplFiller(ImplFiller):
    def __init__(self, ctor: Callable[[str], Generator]):
        self.ctor = ctor

    def fill(self, portrait: List[Member], args: str, item_impl: ImplBlock) -> str:
        return complete_impl(portrait, item_impl, self.ctor(args)).render()


class _CompleterDeriveFiller(DeriveFiller):
    def __init__(self, ctor: Callable[[str], Generator]):
        self.ctor = ctor

    def fill(self, trait_path: str, portrait: List[Member], args: str, input: TypeDecl) -> str:
        return complete_derive(trait_path, portrait, input, self.ctor(args)).render()


def completer_impl_filler(payload: str, ctor: Callable[[str], Generator]) -> str:
    """Shorthand from ``impl_filler`` to ``complete_impl``; ``ctor`` builds the generator from ARGS."""
    return impl_filler(payload, _CompleterImplFiller(ctor))


def completer_derive_filler(payload: str, ctor: Callable[[str], Generator]) -> str:
    """Shorthand from ``derive_filler`` to ``complete_derive``; ``ctor`` builds the generator from ARGS."""
    return derive_filler(payload, _CompleterDeriveFiller(ctor))
