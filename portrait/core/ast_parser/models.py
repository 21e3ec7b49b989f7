"""AST Parser data models.

Defines the core data structures for parsed Rust declarations.
These are pure data containers with no parsing logic. Every model keeps the
verbatim source it was parsed from so that captured declarations can be
re-emitted unmodified.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .utils import is_ident, split_top_level


@dataclass(frozen=True)
class Span:
    """1-based line/column position of a declaration in its source file."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Attribute:
    """An outer attribute such as ``#[cfg(test)]`` or ``#[portrait(...)]``."""

    path: str  # "cfg", "portrait::make"
    args: Optional[str]  # inner text of "(...)", None if absent
    source: str  # "#[cfg(test)]"
    value: Optional[str] = None  # for #[doc = "..."] style attributes
    span: Optional[Span] = None
    byte_range: Optional[Tuple[int, int]] = None  # position in the parsed source

    def is_ident(self, name: str) -> bool:
        return self.path == name


def cfg_attrs(attrs: List[Attribute]) -> List[Attribute]:
    """Filter to ``#[cfg(...)]`` attributes, the only ones carried onto generated items."""
    return [attr for attr in attrs if attr.is_ident("cfg")]


@dataclass
class Param:
    """A single function parameter, receiver or typed."""

    source: str  # "&mut self", "mut x: u32"
    is_receiver: bool
    pattern: Optional[str] = None  # "x", "(a, b)"; None for receivers
    ty: Optional[str] = None  # None for shorthand receivers
    mutable: bool = False  # `mut x` or `&mut self`
    reference: bool = False  # receiver taken by reference
    attrs: List[Attribute] = field(default_factory=list)

    @property
    def ident(self) -> Optional[str]:
        """The bound identifier if the pattern is a plain identifier."""
        if self.pattern is None:
            return None
        pat = self.pattern.strip()
        if pat.startswith("mut "):
            pat = pat[4:].strip()
        if pat.startswith("ref "):
            return None
        return pat if is_ident(pat) else None


@dataclass
class Signature:
    """An associated function signature split into the parts generators rewrite."""

    name: str
    params: List[Param]
    qualifiers: str = ""  # "unsafe", "async", "const", 'extern "C"'
    generics: str = ""  # "<'a, T: Clone>"
    return_type: Optional[str] = None
    where_clause: Optional[str] = None  # "where T: Clone"

    def receiver(self) -> Optional[Param]:
        for param in self.params:
            if param.is_receiver:
                return param
        return None

    def render(self, params: Optional[List[str]] = None) -> str:
        """Render ``fn name<..>(params) -> ret where ..`` (without body or semicolon).

        Args:
            params: Replacement parameter texts; defaults to the parsed ones
                with their attributes
        """
        if params is None:
            params = [render_param(p) for p in self.params]
        head = f"{self.qualifiers} fn" if self.qualifiers else "fn"
        text = f"{head} {self.name}{self.generics}({', '.join(params)})"
        if self.return_type:
            text += f" -> {self.return_type}"
        if self.where_clause:
            text += f" {self.where_clause}"
        return text


def render_param(param: Param, extra_attrs: Optional[List[str]] = None) -> str:
    attrs = [a.source for a in param.attrs] + list(extra_attrs or [])
    return " ".join(attrs + [param.source])


class MemberKind(Enum):
    """The three namespaces of trait members."""
    CONST = "const"
    FN = "fn"
    TYPE = "type"

    @property
    def description(self) -> str:
        return {
            MemberKind.CONST: "associated constant",
            MemberKind.FN: "associated function",
            MemberKind.TYPE: "associated type",
        }[self]


@dataclass
class Member:
    """A trait or impl member. ``source`` is verbatim, attributes included."""

    name: str
    source: str
    attrs: List[Attribute]
    span: Optional[Span]

    kind = MemberKind.FN  # overridden per subclass

    @property
    def cfg_attrs(self) -> List[Attribute]:
        return cfg_attrs(self.attrs)


@dataclass
class ConstMember(Member):
    """``const NAME: Type [= default];``"""

    ty: str
    default: Optional[str] = None

    kind = MemberKind.CONST


@dataclass
class FnMember(Member):
    """``fn name(..) -> Ret;`` or, with a provided body, ``fn name(..) { .. }``."""

    sig: Signature
    body: Optional[str] = None

    kind = MemberKind.FN


@dataclass
class TypeMember(Member):
    """``type Name<Params>: Bounds;`` in a trait, ``type Name<..> = Ty;`` in an impl."""

    generics: str = ""
    bounds: Optional[str] = None
    where_clause: Optional[str] = None
    value: Optional[str] = None

    kind = MemberKind.TYPE

    @property
    def param_names(self) -> List[str]:
        inner = self.generics.strip()[1:-1] if self.generics else ""
        return [generic_param_name(p) for p in split_top_level(inner, ",", angle=True)]


@dataclass
class GenericParam:
    """One generic parameter of a type declaration."""

    source: str  # "T: Clone = u8"
    name: str  # "T", "'a", "N"
    kind: str  # "lifetime" | "type" | "const"

    @property
    def without_default(self) -> str:
        """The parameter as it may appear on an ``impl`` (defaults are not allowed there)."""
        if self.kind == "lifetime":
            return self.source
        parts = split_top_level(self.source, "=", angle=True)
        return parts[0] if parts else self.source


def generic_param_name(source: str) -> str:
    text = source.strip()
    if text.startswith("const "):
        text = text[len("const "):]
    return text.split(":")[0].split("=")[0].strip()


def generic_param(source: str) -> GenericParam:
    text = source.strip()
    if text.startswith("'"):
        kind = "lifetime"
    elif text.startswith("const "):
        kind = "const"
    else:
        kind = "type"
    return GenericParam(source=text, name=generic_param_name(text), kind=kind)


@dataclass
class TraitDecl:
    """A ``trait`` declaration."""

    name: str
    source: str  # item text without outer attributes
    attrs: List[Attribute]
    members: List[Member]
    visibility: str = ""  # "", "pub", "pub(crate)", ...
    span: Optional[Span] = None
    generics: List[GenericParam] = field(default_factory=list)

    @property
    def member_sources(self) -> List[str]:
        return [m.source for m in self.members]


@dataclass
class ImplBlock:
    """An ``impl [Trait for] Type { .. }`` block."""

    source: str  # item text without outer attributes
    header: str  # text up to the where clause or the opening brace of the body
    body_inner: str  # text between the body braces, verbatim
    self_ty: str
    members: List[Member]
    attrs: List[Attribute] = field(default_factory=list)
    trait_path: Optional[str] = None
    negated: bool = False
    generics: List[GenericParam] = field(default_factory=list)
    type_parameters: str = ""  # "<T: Clone>" as written
    where_predicates: List[str] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Field:
    """A struct or variant field; ``name`` is None for tuple fields."""

    index: int
    ty: str
    name: Optional[str] = None
    attrs: List[Attribute] = field(default_factory=list)

    @property
    def member(self) -> str:
        """The member used in struct patterns/expressions: name or tuple index."""
        return self.name if self.name is not None else str(self.index)


@dataclass
class Variant:
    """An enum variant."""

    name: str
    fields: List[Field]
    attrs: List[Attribute] = field(default_factory=list)


@dataclass
class TypeDecl:
    """A ``struct``/``enum``/``union`` declaration (the input of ``derive``)."""

    kind: str  # "struct" | "enum" | "union"
    name: str
    source: str  # item text without outer attributes
    attrs: List[Attribute] = field(default_factory=list)
    generics: List[GenericParam] = field(default_factory=list)
    where_predicates: List[str] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)  # struct/union
    variants: List[Variant] = field(default_factory=list)  # enum
    span: Optional[Span] = None

    @property
    def self_ty(self) -> str:
        if not self.generics:
            return self.name
        return f"{self.name}<{', '.join(p.name for p in self.generics)}>"


@dataclass
class SourceItem:
    """A top-level (or module-level) item located in a source file.

    ``start_byte`` covers the outer attributes; ``item_start_byte`` the item keyword.
    """

    kind: str  # "trait" | "impl" | "struct" | "enum" | "union" | "other"
    start_byte: int
    item_start_byte: int
    end_byte: int
    attrs: List[Attribute]
    span: Span
    decl: object = None  # TraitDecl | ImplBlock | TypeDecl | None
    module_path: str = ""  # "a::b" for items nested in `mod a { mod b { .. } }`


@dataclass
class ParseError:
    """An error encountered during parsing."""

    file_path: str
    line: int
    message: str
    severity: str = "warning"  # "warning" | "error"


@dataclass
class ParseResult:
    """Complete parse output for a single file."""

    file_path: str
    items: List[SourceItem]
    line_count: int = 0
    errors: List[ParseError] = field(default_factory=list)
