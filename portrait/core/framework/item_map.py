"""Member index: trait members and impl members keyed by namespace and name."""

import logging
from typing import Dict, List

from ..ast_parser.models import ConstMember, FnMember, ImplBlock, Member, MemberKind, TypeMember
from ..errors import DuplicateMemberError, UnknownMemberError

logger = logging.getLogger(__name__)


class _ItemMap:
    def __init__(self, members: List[Member]):
        self.consts: Dict[str, ConstMember] = {}
        self.fns: Dict[str, FnMember] = {}
        self.types: Dict[str, TypeMember] = {}

        for member in members:
            table = self.table(member.kind)
            if member.name in table:
                raise DuplicateMemberError(member.name, member.kind, member.span)
            table[member.name] = member

    def table(self, kind: MemberKind) -> Dict[str, Member]:
        if kind is MemberKind.CONST:
            return self.consts
        if kind is MemberKind.FN:
            return self.fns
        return self.types

    def __len__(self) -> int:
        return len(self.consts) + len(self.fns) + len(self.types)

    def __contains__(self, member: Member) -> bool:
        return member.name in self.table(member.kind)


class TraitItemMap(_ItemMap):
    """Indexes members of a trait by namespaced identifier."""

    def minus(self, impl_items: "ImplItemMap") -> None:
        """Remove the members found in the impl, leaving only unimplemented members.

        Raises:
            UnknownMemberError: If the impl provides a member the trait does not declare
        """
        for kind in MemberKind:
            table = self.table(kind)
            for name, impl_item in impl_items.table(kind).items():
                if table.pop(name, None) is None:
                    raise UnknownMemberError(name, kind, impl_item.span)

    def unimplemented(self, trait_items: List[Member]) -> List[Member]:
        """Remaining members in trait declaration order."""
        return [member for member in trait_items if member in self]


class ImplItemMap(_ItemMap):
    """Indexes members of an impl block by namespaced identifier."""

    def __init__(self, impl_block: ImplBlock):
        super().__init__(impl_block.members)


def subtract_items(trait_items: List[Member], impl_block: ImplBlock) -> TraitItemMap:
    """Shorthand for ``TraitItemMap(trait_items).minus(ImplItemMap(impl_block))``."""
    items = TraitItemMap(trait_items)
    items.minus(ImplItemMap(impl_block))
    logger.debug(
        f"{len(impl_block.members)} provided, {len(items)} of {len(trait_items)} trait members left to generate"
    )
    return items
