"""Auto-import heuristic for companion scopes.

Code synthesized at an implementation site lives in another lexical scope
than the trait declaration. ``ImportCollector`` gathers the leading segment
of every relative path used by the trait members so that the companion
scope can re-export them from the declaring module.
"""

import logging
from typing import Iterable, List

from ..ast_parser import get_parser
from ..ast_parser.models import FnMember, Member, TypeMember, generic_param_name
from ..ast_parser.utils import split_top_level
from ..constants import NON_IMPORTABLE_SEGMENTS, PRELUDE_NAMES, PRIMITIVE_TYPES

logger = logging.getLogger(__name__)


class ImportCollector:
    """Collects importable identifiers referenced by trait members."""

    def __init__(self, generic_names: Iterable[str] = ()):
        self.idents: List[str] = []
        self._excluded = set(generic_names)

    def visit_members(self, members: List[Member]) -> None:
        local_generics = set()
        for member in members:
            local_generics.update(_member_generic_names(member))

        roots = get_parser().collect_path_roots([m.source for m in members])
        for name in roots:
            if self._is_importable(name, local_generics):
                self.idents.append(name)

        logger.debug(f"Auto-imports collected: {self.idents}")

    def _is_importable(self, name: str, local_generics: set) -> bool:
        return not (
            name in self.idents
            or name in self._excluded
            or name in local_generics
            or name in NON_IMPORTABLE_SEGMENTS
            or name in PRIMITIVE_TYPES
            or name in PRELUDE_NAMES
        )


def _member_generic_names(member: Member) -> List[str]:
    if isinstance(member, FnMember):
        generics = member.sig.generics
    elif isinstance(member, TypeMember):
        generics = member.generics
    else:
        return []
    inner = generics.strip()[1:-1] if generics else ""
    return [generic_param_name(p) for p in split_top_level(inner, ",", angle=True)]
