"""Source expansion.

Orchestrates: parse → capture traits (make) → complete impls (fill) →
derive impls (derive) → splice the generated code back into the file.

Items are processed top to bottom, so a trait has to be captured before
it is filled or derived, as with the Rust compiler. A failing item is
replaced by a ``compile_error!`` and reported as a diagnostic; the rest
of the file keeps expanding.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..ast_parser import parse_source
from ..ast_parser.models import SourceItem
from ..config import PortraitSettings, get_settings
from ..errors import ArgumentParseError, Diagnostic, PortraitError
from ..transport.scope import PortraitScope
from .common import is_command_attr
from .derive import derive_all
from .fill import fill
from .make import make

logger = logging.getLogger(__name__)


@dataclass
class ExpansionResult:
    """Summary of one expanded source file."""

    file_path: str
    output: str
    items_expanded: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def compile_error(message: str) -> str:
    return f"::core::compile_error!({json.dumps(message)});"


class Expander:
    """Expands the portrait attributes of Rust source files.

    One expander is one session: traits captured in a file stay visible to
    the files expanded after it.
    """

    def __init__(self, scope: Optional[PortraitScope] = None, settings: Optional[PortraitSettings] = None):
        self.scope = scope or PortraitScope()
        self.settings = settings or get_settings()

    # ── Public entry points ──────────────────────────────────────────────

    def expand_file(self, file_path: str) -> ExpansionResult:
        """Read and expand a source file.

        Raises:
            OSError: If the file cannot be read
        """
        with open(file_path, "r", encoding="utf-8") as f:
            source_text = f.read()
        return self.expand_source(source_text, file_path)

    def expand_source(self, source_text: str, file_path: str = "<memory>") -> ExpansionResult:
        """Expand every ``make``/``fill``/``derive`` attribute in ``source_text``."""
        start = time.time()
        result = ExpansionResult(file_path=file_path, output=source_text)

        parsed = parse_source(source_text, file_path)

        source = source_text.encode("utf-8")
        replacements: List[Tuple[int, int, str]] = []

        for item in parsed.items:
            command = self._command_of(item)
            if command is None:
                continue

            snippet = source[item.start_byte:item.end_byte].decode("utf-8")
            # padded so that spans from re-parsing the snippet are file positions
            snippet = "\n" * (item.span.line - 1) + " " * (item.span.column - 1) + snippet
            try:
                replacement = self._expand_item(item, command, snippet)
                result.items_expanded += 1
            except PortraitError as e:
                diagnostic = Diagnostic.from_error(e, file_path, item.span)
                logger.debug(f"Expansion failed: {diagnostic}")
                result.diagnostics.append(diagnostic)
                replacement = compile_error(e.message)

            replacements.append((item.start_byte, item.end_byte, replacement))

        # splice from the end so earlier offsets stay valid
        output = source
        for start_byte, end_byte, text in sorted(replacements, reverse=True):
            output = output[:start_byte] + text.encode("utf-8") + output[end_byte:]
        result.output = output.decode("utf-8")

        result.elapsed_seconds = time.time() - start
        self._log_result(result)
        return result

    # ── Items ────────────────────────────────────────────────────────────

    def _command_of(self, item: SourceItem) -> Optional[str]:
        command = {"trait": "make", "impl": "fill"}.get(item.kind, "derive")
        if any(is_command_attr(a, command, self.settings) for a in item.attrs):
            return command
        return None

    def _expand_item(self, item: SourceItem, command: str, snippet: str) -> str:
        attrs = [a for a in item.attrs if is_command_attr(a, command, self.settings)]

        if command == "make":
            if len(attrs) > 1:
                raise ArgumentParseError("#[make] can only be applied once", attrs[1].span)
            output = make(attrs[0].args, snippet, self.scope, item.module_path, attrs[0].span, self.settings)
            return output.render()

        if command == "fill":
            if len(attrs) > 1:
                raise ArgumentParseError("#[fill] can only be applied once", attrs[1].span)
            return fill(attrs[0].args, snippet, self.scope, item.module_path, attrs[0].span, self.settings)

        return derive_all(
            [a.args for a in attrs], snippet, self.scope, item.module_path, attrs[0].span, self.settings
        )

    def _log_result(self, result: ExpansionResult) -> None:
        logger.info(
            f"Expanded {result.file_path}: {result.items_expanded} items, "
            f"{len(result.diagnostics)} errors ({result.elapsed_seconds:.3f}s)"
        )
