"""Configuration-object parsing for generator and command arguments.

Arguments are ``key = value`` / ``key(...)`` / ``key`` entries separated by
commas. Each configuration class declares its keys and consumes one entry
at a time; single-valued keys are ``Once`` fields that reject a second
assignment.
"""

import re
from typing import Callable, Generic, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from ..ast_parser.models import Attribute, Span
from ..ast_parser.utils import matching_close, split_entries, split_top_level, take_group
from ..config import get_settings
from ..constants import NOOP_ATTRIBUTE
from ..errors import ArgumentParseError

T = TypeVar("T")
A = TypeVar("A", bound="ParseArgs")

_KEY_RE = re.compile(r"^(?:r#)?[A-Za-z_][A-Za-z0-9_]*")


class Once(Generic[T]):
    """A configuration field that may be assigned at most once."""

    def __init__(self) -> None:
        self._value: Optional[T] = None
        self._set = False

    def set(self, value: T, span: Optional[Span] = None) -> None:
        if self._set:
            raise ArgumentParseError("Argument cannot be set twice", span)
        self._value = value
        self._set = True

    @property
    def is_set(self) -> bool:
        return self._set

    def try_get(self) -> Optional[T]:
        return self._value if self._set else None

    def get_or(self, default: Union[T, Callable[[], T]]) -> T:
        if self._set:
            return self._value
        return default() if callable(default) else default


def split_key_value(entry: str, span: Optional[Span] = None) -> Tuple[str, Optional[str], Optional[str]]:
    """Split one argument entry.

    Returns:
        (key, ``= value`` text or None, ``(...)`` inner text or None)

    Raises:
        ArgumentParseError: If the entry does not start with an identifier
            or has trailing tokens
    """
    entry = entry.strip()
    match = _KEY_RE.match(entry)
    if not match:
        raise ArgumentParseError(f"expected identifier, found `{entry}`", span)

    key = match.group(0)
    rest = entry[match.end():].strip()
    if not rest:
        return key, None, None
    if rest.startswith("=") and not rest.startswith("=="):
        value = rest[1:].strip()
        if not value:
            raise ArgumentParseError(f"expected expression after `{key} =`", span)
        return key, value, None
    if rest.startswith("("):
        try:
            group, trailing = take_group(rest, "(")
        except ValueError as e:
            raise ArgumentParseError(str(e), span) from e
        if trailing:
            raise ArgumentParseError(f"unexpected tokens after `{key}(...)`: `{trailing}`", span)
        return key, None, group
    raise ArgumentParseError(f"unexpected tokens after `{key}`: `{rest}`", span)


class ParseArgs:
    """Base class of configuration objects populated from argument entries.

    Subclasses list their accepted ``KEYS`` and implement ``parse_once``.
    """

    KEYS: Tuple[str, ...] = ()

    def parse_once(self, key: str, value: Optional[str], group: Optional[str], span: Optional[Span]) -> None:
        raise NotImplementedError

    def expected(self) -> str:
        return ", ".join(f"`{k}`" for k in self.KEYS)

    @classmethod
    def parse(cls: Type[A], text: Optional[str], span: Optional[Span] = None) -> A:
        args = cls()
        parse_args(text or "", args, span)
        return args


def parse_args(text: str, args: ParseArgs, span: Optional[Span] = None) -> None:
    """Feed every entry of ``text`` to ``args.parse_once``."""
    for entry in split_entries(text, args.KEYS):
        key, value, group = split_key_value(entry, span)
        if key not in args.KEYS:
            raise ArgumentParseError(f"unexpected argument `{key}`, expected one of {args.expected()}", span)
        args.parse_once(key, value, group, span)


def parse_grouped_attr(
    attrs: Iterable[Attribute],
    group_name: str,
    cls: Type[A],
    namespace: Optional[str] = None,
) -> A:
    """Collect ``#[portrait(group_name(...))]`` arguments from member attributes.

    Groups addressed to other generators are skipped.
    """
    namespace = namespace or get_settings().attribute_namespace
    args = cls()

    for attr in attrs:
        if not attr.is_ident(namespace):
            continue
        if attr.args is None:
            raise ArgumentParseError(f"expected `#[{namespace}(...)]`", attr.span)
        for entry in split_top_level(attr.args, ","):
            key, _value, group = split_key_value(entry, attr.span)
            if key == group_name:
                parse_args(group or "", args, attr.span)

    return args


class NoArgs(ParseArgs):
    """No arguments accepted by the generator."""

    @classmethod
    def parse(cls, text: Optional[str], span: Optional[Span] = None) -> "NoArgs":
        if text and text.strip():
            raise ArgumentParseError("No argument expected", span)
        return cls()


def strip_attr(text: str, namespace: Optional[str] = None) -> str:
    """Neutralize ``#[portrait(...)]`` helper attributes in a declaration.

    Each one is replaced with an always-true ``#[cfg(all())]`` so that line
    structure and the remaining attributes are untouched.
    """
    namespace = namespace or get_settings().attribute_namespace
    pattern = re.compile(r"#\s*\[\s*" + re.escape(namespace) + r"\s*[(\]]")

    out: List[str] = []
    pos = 0
    while True:
        match = pattern.search(text, pos)
        if not match:
            break
        open_index = text.index("[", match.start())
        close = matching_close(text, open_index)
        out.append(text[pos:match.start()])
        out.append(NOOP_ATTRIBUTE)
        pos = close + 1
    out.append(text[pos:])
    return "".join(out)
