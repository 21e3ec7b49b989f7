"""Filler framework: argument parsing, member index and the completion engine.

Public API:
    complete_impl(trait_items, impl_block, generator) → ImplOutput
    complete_derive(trait_path, trait_items, input, generator) → ImplOutput
    completer_impl_filler(payload, ctor) → str
    completer_derive_filler(payload, ctor) → str
"""

from .args import NoArgs, Once, ParseArgs, parse_args, parse_grouped_attr, split_key_value, strip_attr
from .completer import ImplOutput, complete_derive, complete_impl
from .filler import (
    DeriveFiller,
    FillerInput,
    ImplFiller,
    completer_derive_filler,
    completer_impl_filler,
    derive_filler,
    impl_filler,
)
from .generator import DeriveContext, Generator, ImplContext
from .item_map import ImplItemMap, TraitItemMap, subtract_items

__all__ = [
    "DeriveContext",
    "DeriveFiller",
    "FillerInput",
    "Generator",
    "ImplContext",
    "ImplFiller",
    "ImplItemMap",
    "ImplOutput",
    "NoArgs",
    "Once",
    "ParseArgs",
    "TraitItemMap",
    "complete_derive",
    "complete_impl",
    "completer_derive_filler",
    "completer_impl_filler",
    "derive_filler",
    "impl_filler",
    "parse_args",
    "parse_grouped_attr",
    "split_key_value",
    "strip_attr",
    "subtract_items",
]
