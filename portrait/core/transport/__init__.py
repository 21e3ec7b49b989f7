"""Portrait transport: capture a trait's members and deliver them to fillers.

Public API:
    capture(trait_decl, options) → PortraitTemplate
    PortraitTemplate.invoke(target, args, ...) → str
    PortraitScope.resolve(trait_path) → PortraitTemplate
"""

from .imports import ImportCollector
from .portrait import (
    CaptureOptions,
    CompanionScope,
    FillerEntry,
    PortraitTemplate,
    capture,
    companion_name,
    import_visibility,
)
from .scope import PortraitScope

__all__ = [
    "CaptureOptions",
    "CompanionScope",
    "FillerEntry",
    "ImportCollector",
    "PortraitScope",
    "PortraitTemplate",
    "capture",
    "companion_name",
    "import_visibility",
]
