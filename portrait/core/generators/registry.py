"""Filler registry.

Simple dict-based registry. All built-in fillers are registered at import
time via ``generators/__init__.py``; other fillers are added with
``FillerRegistry.register``. The commands look fillers up by the path
written in the attribute (``portrait::default``, ``default``, ...).
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..ast_parser.models import Span
from ..ast_parser.utils import strip_generic_args
from ..errors import ArgumentParseError

logger = logging.getLogger(__name__)

FILLER_KINDS = ("impl", "derive")


@dataclass(frozen=True)
class RegisteredFiller:
    """A filler entry point: payload text in, synthesized Rust text out."""

    name: str
    kind: str  # "impl" | "derive"
    entry: Callable[[str], str]
    description: str = ""


class FillerRegistry:
    """Registry of impl and derive fillers.

    Class-level store so the commands can call
    ``FillerRegistry.resolve(...)`` without holding an instance.
    """

    _fillers: Dict[str, RegisteredFiller] = {}

    @classmethod
    def register(cls, name: str, kind: str, entry: Callable[[str], str], description: str = "") -> None:
        """Register a filler under a name (a path such as ``my_crate::fill_with``)."""
        if kind not in FILLER_KINDS:
            raise ValueError(f"unknown filler kind: {kind}")
        cls._fillers[name] = RegisteredFiller(name=name, kind=kind, entry=entry, description=description)
        logger.debug("Registered %s filler: %s", kind, name)

    @classmethod
    def resolve(cls, path: str, kind: Optional[str] = None, span: Optional[Span] = None) -> RegisteredFiller:
        """Find a filler by full path, then by last path segment.

        Raises:
            ArgumentParseError: If no filler matches or it has the wrong kind
        """
        key = strip_generic_args(path).replace(" ", "").lstrip(":")
        filler = cls._fillers.get(key)
        if filler is None:
            filler = cls._fillers.get(key.split("::")[-1])
        if filler is None:
            raise ArgumentParseError(f"cannot find filler `{path}`", span)

        if kind is not None and filler.kind != kind:
            command = "fill" if kind == "impl" else "derive"
            raise ArgumentParseError(
                f"`{filler.name}` is a {filler.kind} filler and cannot be used with #[portrait::{command}]",
                span,
            )
        return filler

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._fillers.pop(name, None)

    @classmethod
    def list_fillers(cls) -> List[Dict[str, Any]]:
        """List all registered fillers with metadata."""
        return [
            {
                "name": filler.name,
                "kind": filler.kind,
                "description": filler.description,
            }
            for filler in cls._fillers.values()
        ]
