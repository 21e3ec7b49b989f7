"""Built-in fillers.

All built-in fillers are registered on import. The :class:`FillerRegistry`
is the single entry point for the commands to look fillers up.
"""

from .registry import FillerRegistry, RegisteredFiller

# ── Register built-in fillers ─────────────────────────────────────────

from .default import DefaultGenerator, default
from .delegate import DelegateGenerator, delegate
from .derive_delegate import DeriveDelegateGenerator, derive_delegate
from .log import LogGenerator, log

FillerRegistry.register("default", "impl", default, "Return Default::default() from every missing member")
FillerRegistry.register("delegate", "impl", delegate, "Forward every missing member to a delegate type")
FillerRegistry.register("log", "impl", log, "Call a formatting macro with the arguments of every missing function")
FillerRegistry.register("derive_delegate", "derive", derive_delegate, "Delegate every function to all fields")

__all__ = [
    "DefaultGenerator",
    "DelegateGenerator",
    "DeriveDelegateGenerator",
    "FillerRegistry",
    "LogGenerator",
    "RegisteredFiller",
    "default",
    "delegate",
    "derive_delegate",
    "log",
]
