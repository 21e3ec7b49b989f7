# Lazy imports to avoid loading the tree-sitter grammar on import.
# This allows targeted imports like `from portrait.core.errors import PortraitError`
# without pulling in the parser, the fillers, etc.

__all__ = [
    # Parsing
    "parse_source",
    "parse_file",
    # Transport
    "capture",
    "CaptureOptions",
    "PortraitTemplate",
    "PortraitScope",
    # Completion engine
    "Generator",
    "complete_impl",
    "complete_derive",
    "completer_impl_filler",
    "completer_derive_filler",
    # Fillers
    "FillerRegistry",
    # Commands
    "make",
    "fill",
    "derive",
    "Expander",
    "ExpansionResult",
    # Settings
    "PortraitSettings",
    "get_settings",
]

_IMPORT_MAP = {
    "parse_source": ".ast_parser",
    "parse_file": ".ast_parser",
    "capture": ".transport",
    "CaptureOptions": ".transport",
    "PortraitTemplate": ".transport",
    "PortraitScope": ".transport",
    "Generator": ".framework",
    "complete_impl": ".framework",
    "complete_derive": ".framework",
    "completer_impl_filler": ".framework",
    "completer_derive_filler": ".framework",
    "FillerRegistry": ".generators",
    "make": ".commands",
    "fill": ".commands",
    "derive": ".commands",
    "Expander": ".commands",
    "ExpansionResult": ".commands",
    "PortraitSettings": ".config",
    "get_settings": ".config",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'portrait.core' has no attribute {name}")
