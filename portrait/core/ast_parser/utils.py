"""AST Parser utilities.

Text helpers shared by the parser, the commands and the generators.
Rust fragments are handled as text once tree-sitter has located them;
these helpers split and normalize such fragments without re-parsing.
"""

import re
from typing import Iterable, List, Optional, Tuple

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {")": "(", "]": "[", "}": "{"}

IDENT_RE = re.compile(r"^(?:r#)?[A-Za-z_][A-Za-z0-9_]*$")
PATH_RE = re.compile(r"^(?:::)?(?:r#)?[A-Za-z_][A-Za-z0-9_]*(?:\s*::\s*(?:r#)?[A-Za-z_][A-Za-z0-9_]*)*")


def _skip_literal(text: str, i: int) -> int:
    """Return the index just past a string/char literal or comment starting at ``i``.

    Returns ``i`` unchanged if nothing literal-like starts there.
    """
    ch = text[i]
    n = len(text)

    if ch == '"':
        j = i + 1
        while j < n:
            if text[j] == "\\":
                j += 2
                continue
            if text[j] == '"':
                return j + 1
            j += 1
        return n

    if ch == "'":
        # char literal ('a', '\n', '\u{1F600}') vs lifetime ('a)
        if i + 1 < n and text[i + 1] == "\\":
            end = text.find("'", i + 2)
            return n if end < 0 else end + 1
        if i + 2 < n and text[i + 2] == "'":
            return i + 3
        return i

    if text.startswith("//", i):
        end = text.find("\n", i)
        return n if end < 0 else end + 1

    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        return n if end < 0 else end + 2

    return i


def split_top_level(text: str, sep: str = ",", angle: bool = False) -> List[str]:
    """Split ``text`` on ``sep`` occurring outside of any bracket pair.

    Args:
        text: Rust fragment
        sep: single-character separator
        angle: Also treat ``<``/``>`` as brackets (type contexts only;
            ``->`` and ``=>`` are never counted)

    Returns:
        Stripped, non-empty segments
    """
    parts: List[str] = []
    depth = 0
    angle_depth = 0
    start = 0
    i = 0
    n = len(text)

    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue

        ch = text[i]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif angle and ch == "<":
            angle_depth += 1
        elif angle and ch == ">" and i > 0 and text[i - 1] not in "-=":
            angle_depth -= 1
        elif ch == sep and depth == 0 and angle_depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1

    parts.append(text[start:])
    return [p.strip() for p in parts if p.strip()]


def split_entries(text: str, keys: Iterable[str]) -> List[str]:
    """Split a ``key = value, key, ...`` list whose values are arbitrary expressions.

    Commas inside closure parameter lists (``|a, b| a && b``) are not nested
    in brackets, so a top-level segment that does not start with one of the
    known ``keys`` is glued back onto the previous entry.
    """
    keys = tuple(keys)
    entries: List[str] = []
    for segment in split_top_level(text, ","):
        if entries and not starts_with_key(segment, keys):
            entries[-1] = f"{entries[-1]}, {segment}"
        else:
            entries.append(segment)
    return entries


def starts_with_key(segment: str, keys: Iterable[str]) -> bool:
    match = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)", segment)
    return bool(match) and match.group(1) in keys


def matching_close(text: str, open_index: int) -> int:
    """Return the index of the bracket closing the one at ``open_index``.

    Raises:
        ValueError: If the bracket is never closed
    """
    depth = 0
    i = open_index
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue
        ch = text[i]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ValueError(f"unbalanced `{text[open_index]}` in {text!r}")


def take_group(text: str, opener: str = "(") -> Tuple[Optional[str], str]:
    """Take a leading bracket group off ``text``.

    Returns:
        (inner text or None if ``text`` does not start with ``opener``, remainder)
    """
    text = text.lstrip()
    if not text.startswith(opener):
        return None, text
    close = matching_close(text, 0)
    return text[1:close].strip(), text[close + 1:].lstrip()


def take_path(text: str) -> Tuple[Optional[str], str]:
    """Take a leading ``a::b::c`` path off ``text`` (whitespace around ``::`` removed)."""
    text = text.lstrip()
    match = PATH_RE.match(text)
    if not match:
        return None, text
    path = re.sub(r"\s+", "", match.group(0))
    return path, text[match.end():].lstrip()


def to_snake_case(name: str) -> str:
    """``FooBar`` -> ``foo_bar``, ``HTTPServer`` -> ``http_server``."""
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s)
    return s.replace("-", "_").lower()


def normalize_type(text: Optional[str]) -> str:
    """Collapse whitespace so that textual type comparisons are stable."""
    if text is None:
        return ""
    return re.sub(r"\s+", "", text)


def strip_generic_args(path: str) -> str:
    """``a::Foo<T, U>`` -> ``a::Foo``."""
    path = path.strip()
    idx = path.find("<")
    return path[:idx].rstrip(": ").strip() if idx >= 0 else path


def last_segment(path: str) -> str:
    return strip_generic_args(path).split("::")[-1].strip()


def is_ident(text: str) -> bool:
    return bool(IDENT_RE.match(text))
