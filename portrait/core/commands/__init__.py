"""Surface commands: ``make``, ``fill`` and ``derive``, and the source expander.

Public API:
    make(attr_args, trait, scope) → MakeOutput
    fill(attr_args, impl, scope) → str
    derive(attr_args, input, scope) → str
    Expander().expand_source(text, file_path) → ExpansionResult
"""

from .derive import DeriveAttr, derive, derive_all
from .expander import ExpansionResult, Expander, compile_error
from .fill import FillAttr, fill
from .make import ItemArgs, MakeOutput, make

__all__ = [
    "DeriveAttr",
    "ExpansionResult",
    "Expander",
    "FillAttr",
    "ItemArgs",
    "MakeOutput",
    "compile_error",
    "derive",
    "derive_all",
    "fill",
    "make",
]
