"""Helpers shared by the ``make``/``fill``/``derive`` commands."""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..ast_parser.models import Attribute, Span
from ..ast_parser.utils import matching_close, strip_generic_args, take_group, take_path, to_snake_case
from ..config import PortraitSettings, get_settings
from ..constants import OPTION_DEBUG_PRINT, OPTION_DEBUG_PRINT_FILLER_OUTPUT, OPTION_MOD_PATH
from ..errors import ArgumentParseError
from ..framework.render import indent

_OPTION_RE = re.compile(r"@\s*([A-Za-z_][A-Za-z0-9_]*)")


def is_command_attr(attr: Attribute, command: str, settings: Optional[PortraitSettings] = None) -> bool:
    """``#[portrait::<command>(...)]`` (namespace from settings)."""
    settings = settings or get_settings()
    return attr.path == settings.attribute_path(command)


def item_text(attrs: List[Attribute], source: str, command: str, settings: Optional[PortraitSettings] = None) -> str:
    """Rebuild an item's text with its outer attributes, minus the command attribute itself."""
    kept = [a.source for a in attrs if not is_command_attr(a, command, settings)]
    return "\n".join(kept + [source])


def blank_command_attrs(
    text: str, attrs: List[Attribute], command: str, settings: Optional[PortraitSettings] = None
) -> str:
    """Remove the command attribute from an item's text, keeping line and column positions.

    ``attrs`` must have been parsed from ``text`` itself.
    """
    data = bytearray(text.encode("utf-8"))
    for attr in attrs:
        if attr.byte_range is None or not is_command_attr(attr, command, settings):
            continue
        start, end = attr.byte_range
        for i in range(start, end):
            if data[i] not in (0x0A, 0x0D):
                data[i] = 0x20
    return data.decode("utf-8")


def default_mod_path(trait_path: str, settings: Optional[PortraitSettings] = None) -> str:
    """Companion scope path deduced from the trait path: ``a::Foo<T>`` -> ``a::foo_portrait``."""
    settings = settings or get_settings()
    segments = strip_generic_args(trait_path).split("::")
    segments[-1] = to_snake_case(segments[-1].strip()) + settings.companion_suffix
    return "::".join(segments)


def wrap_const(mod_path: str, body: str) -> str:
    """Scope generated code in an anonymous const that glob-imports the companion scope."""
    return f"const _: () = {{\n{indent(f'use {mod_path}::imports::*;')}\n\n{indent(body)}\n}};"


@dataclass
class CommandOptions:
    """``@OPTION`` flags leading the arguments of ``fill`` and ``derive``."""

    debug_print: bool = False
    debug_print_filler_output: bool = False
    mod_path: Optional[str] = None


def parse_options(text: str, span: Optional[Span] = None) -> Tuple[CommandOptions, str]:
    """Consume leading ``@OPTION`` entries.

    Returns:
        (options, remaining text)
    """
    options = CommandOptions()
    rest = text.strip()

    while rest.startswith("@"):
        match = _OPTION_RE.match(rest)
        if not match:
            raise ArgumentParseError("expected an option name after `@`", span)
        name = match.group(1)
        rest = rest[match.end():].lstrip()

        if name == OPTION_DEBUG_PRINT:
            options.debug_print = True
        elif name == OPTION_DEBUG_PRINT_FILLER_OUTPUT:
            options.debug_print_filler_output = True
        elif name == OPTION_MOD_PATH:
            try:
                mod_path, rest = take_group(rest, "(")
            except ValueError as e:
                raise ArgumentParseError(str(e), span) from e
            if not mod_path:
                raise ArgumentParseError(f"expected `@{OPTION_MOD_PATH}(path)`", span)
            options.mod_path = mod_path
        else:
            raise ArgumentParseError(
                f"unknown option `@{name}`, expected one of `@{OPTION_DEBUG_PRINT}`, "
                f"`@{OPTION_DEBUG_PRINT_FILLER_OUTPUT}`, `@{OPTION_MOD_PATH}`",
                span,
            )
    return options, rest


def take_generic_path(text: str) -> Tuple[Optional[str], str]:
    """Take a path that may end with generic arguments (``a::Foo<T, U>``)."""
    path, rest = take_path(text)
    if path is None or not rest.startswith("<"):
        return path, rest

    depth = 0
    for i, ch in enumerate(rest):
        if ch == "<":
            depth += 1
        elif ch == ">" and (i == 0 or rest[i - 1] != "-"):
            depth -= 1
            if depth == 0:
                return path + rest[:i + 1], rest[i + 1:].lstrip()
    return None, text


def parse_filler_call(text: str, span: Optional[Span] = None) -> Tuple[str, str]:
    """Parse ``filler_path[(args)]``.

    Returns:
        (filler path, argument text or "")
    """
    path, rest = take_path(text)
    if not path:
        raise ArgumentParseError(f"expected a filler path, found `{text.strip()}`", span)
    if not rest:
        return path, ""
    if not rest.startswith("("):
        raise ArgumentParseError(f"unexpected tokens after `{path}`: `{rest}`", span)

    try:
        close = matching_close(rest, 0)
    except ValueError as e:
        raise ArgumentParseError(str(e), span) from e
    args, trailing = rest[1:close].strip(), rest[close + 1:].strip()
    if trailing:
        raise ArgumentParseError(f"unexpected tokens after `{path}(...)`: `{trailing}`", span)
    return path, args
