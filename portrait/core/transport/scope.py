"""Session registry of captured portraits.

The Rust compiler resolves the template macro through the trait's own
name; this registry plays that role for one expansion session. Entries
are written once by the capture step and only read afterwards.
"""

import logging
from typing import Dict, List, Optional

from ..ast_parser.models import Span
from ..ast_parser.utils import strip_generic_args
from ..errors import ArgumentParseError, UnresolvedPortraitError
from .portrait import PortraitTemplate

logger = logging.getLogger(__name__)

_ABSOLUTE_PREFIXES = ("crate::", "::")


class PortraitScope:
    """Write-once registry of captured templates keyed by module path and trait name."""

    def __init__(self) -> None:
        self._templates: Dict[str, PortraitTemplate] = {}

    @staticmethod
    def _key(module_path: str, name: str) -> str:
        return f"{module_path}::{name}" if module_path else name

    def add(self, template: PortraitTemplate, module_path: str = "") -> None:
        """Register a captured template.

        Raises:
            ArgumentParseError: If the same trait name was already captured in this module
        """
        key = self._key(module_path, template.trait_name)
        if key in self._templates:
            raise ArgumentParseError(f"the name `{template.trait_name}` is defined multiple times", template.span)
        self._templates[key] = template
        logger.debug(f"Registered portrait `{key}`")

    def resolve(self, trait_path: str, module_path: str = "", span: Optional[Span] = None) -> PortraitTemplate:
        """Find the template for a trait path used at an implementation site.

        ``crate::``/``::`` paths are looked up from the crate root; other
        paths relative to the current module (``self::``/``super::`` are
        honored), then from the crate root. As a last resort the last path
        segment is matched, when it names exactly one captured trait.

        Raises:
            UnresolvedPortraitError: If no template (or more than one by last segment) matches
        """
        path = strip_generic_args(trait_path).replace(" ", "")

        for key in self._candidate_keys(path, module_path):
            if key in self._templates:
                return self._templates[key]

        name = path.split("::")[-1]
        candidates = [t for k, t in self._templates.items() if k.split("::")[-1] == name]
        if len(candidates) == 1:
            return candidates[0]

        if candidates:
            raise UnresolvedPortraitError(f"ambiguous trait path `{trait_path}`, use its full path", span)
        raise UnresolvedPortraitError(
            f"cannot find a portrait for `{trait_path}`; is the trait declared with #[portrait::make] before use?",
            span,
        )

    def _candidate_keys(self, path: str, module_path: str) -> List[str]:
        for prefix in _ABSOLUTE_PREFIXES:
            if path.startswith(prefix):
                return [path[len(prefix):]]

        segments = module_path.split("::") if module_path else []
        while path.startswith(("self::", "super::")):
            if path.startswith("super::"):
                segments = segments[:-1]
                path = path[len("super::"):]
            else:
                path = path[len("self::"):]

        keys = [self._key("::".join(segments), path)]
        if path not in keys:
            keys.append(path)
        return keys

    def __contains__(self, trait_path: str) -> bool:
        try:
            self.resolve(trait_path)
        except UnresolvedPortraitError:
            return False
        return True

    def names(self) -> List[str]:
        return list(self._templates)
