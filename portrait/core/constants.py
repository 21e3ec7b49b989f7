"""Shared constants for portrait.

Names that appear in generated Rust code or that callers have to know
about are defined here so that every module agrees on them.
"""

# =============================================================================
# Attribute namespace
# =============================================================================

# Default path prefix of the surface attributes (#[portrait::make], ...)
DEFAULT_NAMESPACE = "portrait"

# Suffix of the companion module derived from the trait name
COMPANION_SUFFIX = "_portrait"

# =============================================================================
# Template protocol
# =============================================================================

# Prefix of the randomized macro alias holding the captured trait items
TEMPLATE_ALIAS_PREFIX = "portrait_items_"

# Payload section keywords, in the order the template emits them
SECTION_TRAIT_PORTRAIT = "TRAIT_PORTRAIT"
SECTION_TRAIT_PATH = "TRAIT_PATH"
SECTION_ARGS = "ARGS"
SECTION_IMPL = "IMPL"
SECTION_INPUT = "INPUT"
SECTION_DEBUG_PRINT = "DEBUG_PRINT_FILLER_OUTPUT"

# Command options (written as @OPTION in #[fill]/#[derive])
OPTION_DEBUG_PRINT = "__DEBUG_PRINT"
OPTION_DEBUG_PRINT_FILLER_OUTPUT = "DEBUG_PRINT_FILLER_OUTPUT"
OPTION_MOD_PATH = "MOD_PATH"

# =============================================================================
# Generated identifiers
# =============================================================================

# Binding of the n-th field in derive_delegate patterns
SELF_FIELD_PREFIX = "__portrait_self_"

# Binding of a field extracted from a non-receiver Self parameter
OTHER_FIELD_BINDING = "__portrait_other"

# Replacement of stripped #[portrait(...)] helper attributes
NOOP_ATTRIBUTE = "#[cfg(all())]"

# =============================================================================
# Auto-import heuristic
# =============================================================================

# Leading path segments that never need re-exporting
NON_IMPORTABLE_SEGMENTS = frozenset({
    "Self", "self", "super", "crate",
})

PRIMITIVE_TYPES = frozenset({
    "bool", "char", "str",
    "i8", "i16", "i32", "i64", "i128", "isize",
    "u8", "u16", "u32", "u64", "u128", "usize",
    "f32", "f64",
})

# Names available through the Rust prelude in every module
PRELUDE_NAMES = frozenset({
    "Option", "Some", "None", "Result", "Ok", "Err",
    "Vec", "String", "Box", "ToString", "ToOwned",
    "Clone", "Copy", "Send", "Sync", "Sized", "Unpin",
    "Default", "Drop", "Fn", "FnMut", "FnOnce",
    "Iterator", "IntoIterator", "DoubleEndedIterator", "ExactSizeIterator", "Extend",
    "PartialEq", "Eq", "PartialOrd", "Ord",
    "AsRef", "AsMut", "Into", "From", "TryFrom", "TryInto", "FromIterator",
    "core", "std", "alloc",
})
