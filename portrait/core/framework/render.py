"""Text rendering of generated Rust items.

Generated code is assembled from strings; these helpers keep layout
(indentation, block braces, where clauses) uniform across generators.
"""

import textwrap
from typing import List

INDENT = "    "


def indent(text: str, level: int = 1) -> str:
    return textwrap.indent(text, INDENT * level)


def render_block(stmts: List[str]) -> str:
    """``{ stmt; ... }`` with one statement per line."""
    if not stmts:
        return "{}"
    return "{\n" + indent("\n".join(stmts)) + "\n}"


def render_attrs(attrs: List[str]) -> str:
    return "".join(f"{attr}\n" for attr in attrs)


def render_fn(attrs: List[str], signature: str, stmts: List[str]) -> str:
    return render_attrs(attrs) + f"{signature} " + render_block(stmts)


def render_where(predicates: List[str]) -> str:
    if not predicates:
        return ""
    return "\nwhere\n" + "\n".join(f"{INDENT}{p}," for p in predicates)
