"""Diagnostics raised while capturing portraits and completing implementations.

Every failure is an exception carrying the span of the offending declaration.
The expander turns them into ``Diagnostic`` records; everything below it
just raises.
"""

from dataclasses import dataclass
from typing import Optional

from .ast_parser.models import MemberKind, Span


class PortraitError(Exception):
    """Base class for all portrait diagnostics."""

    category = "error"

    def __init__(self, message: str, span: Optional[Span] = None):
        super().__init__(message)
        self.message = message
        self.span = span


class ArgumentParseError(PortraitError):
    """Malformed attribute, generator argument or portrait payload syntax."""

    category = "parse"


class UnknownMemberError(PortraitError):
    """The impl block provides a member that the trait does not declare."""

    category = "consistency"

    def __init__(self, name: str, kind: MemberKind, span: Optional[Span] = None):
        super().__init__(f"no {kind.description} called `{name}` in trait", span)
        self.name = name
        self.kind = kind


class DuplicateMemberError(PortraitError):
    """The same name appears twice in one member namespace."""

    category = "consistency"

    def __init__(self, name: str, kind: MemberKind, span: Optional[Span] = None):
        super().__init__(f"duplicate {kind.description} `{name}`", span)
        self.name = name
        self.kind = kind


class UnsupportedItemError(PortraitError):
    """A generator was asked for a member kind (or input shape) it cannot synthesize."""

    category = "capability"


class AggregationError(PortraitError):
    """Field delegation cannot combine per-field results for a return type."""

    category = "aggregation"


class ShapeRestrictionError(PortraitError):
    """Enum delegation used with a receiver-less function or a non-receiver Self parameter."""

    category = "shape"


class UnresolvedPortraitError(PortraitError):
    """No captured portrait is visible for the trait referenced at an implementation site."""

    category = "resolution"


@dataclass
class Diagnostic:
    """A reported failure, attached to the source location that produced it."""

    file_path: str
    line: int
    column: int
    message: str
    category: str = "error"

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line}:{self.column}: error[{self.category}]: {self.message}"

    @classmethod
    def from_error(cls, error: PortraitError, file_path: str, fallback: Optional[Span] = None) -> "Diagnostic":
        span = error.span or fallback or Span(line=0, column=0)
        return cls(
            file_path=file_path,
            line=span.line,
            column=span.column,
            message=error.message,
            category=error.category,
        )
