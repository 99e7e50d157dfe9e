"""Public entry points for turning layout files into resolved models.

Parsing runs one fixed sequence per call::

    Start -> Deserialized -> StructurallyValid -> [InheritanceResolving ->
    Merged] -> FinallyValid -> Done

Any fatal condition moves the parse to ``Failed`` and raises a
:class:`~keydeck.core.errors.LayoutParseError` subclass.
"""

import logging
from enum import Enum
from pathlib import Path

from keydeck.config.settings import ParserSettings
from keydeck.core.errors import LayoutParseError, LayoutValidationError
from keydeck.layout.deserializer import deserialize_layout
from keydeck.layout.graph import analyze_panel_graph
from keydeck.layout.inheritance import STRING_SOURCE, InheritanceResolver
from keydeck.layout.loader import create_file_loader
from keydeck.layout.results import ParseResult, ValidationIssue, sort_issues
from keydeck.layout.validation import validate_decoded, validate_layout
from keydeck.protocols import LayoutLoaderProtocol


logger = logging.getLogger(__name__)


class ParseStage(str, Enum):
    """States a parse moves through; ``DONE`` and ``FAILED`` are terminal."""

    START = "start"
    DESERIALIZED = "deserialized"
    STRUCTURALLY_VALID = "structurally_valid"
    INHERITANCE_RESOLVING = "inheritance_resolving"
    MERGED = "merged"
    FINALLY_VALID = "finally_valid"
    DONE = "done"
    FAILED = "failed"


def _log_stage(stage: ParseStage, label: str) -> None:
    logger.debug("Parse of %s: %s", label, stage.value)


class LayoutParser:
    """Parses layouts with a fixed loader and settings.

    Instances hold configuration only; every call is independent, so a
    single parser may be shared between threads.
    """

    def __init__(
        self,
        loader: LayoutLoaderProtocol | None = None,
        settings: ParserSettings | None = None,
    ) -> None:
        self.loader = loader or create_file_loader()
        self.settings = settings or ParserSettings()
        self._resolver = InheritanceResolver(self.loader, self.settings)

    def parse_file(self, path: str | Path) -> ParseResult:
        """Parse a layout file and every layout it inherits from.

        Args:
            path: Layout file to parse

        Returns:
            The resolved layout and any warnings

        Raises:
            LayoutParseError: On any fatal problem; see the subclasses
        """
        path = Path(path)
        logger.info("Parsing layout file: %s", path)
        text = self.loader.load(path)
        return self._parse(text, source=path, base_dir=None)

    def parse_string(self, text: str, base_dir: str | Path | None = None) -> ParseResult:
        """Parse layout JSON text.

        Args:
            text: Layout JSON
            base_dir: Directory relative ``inherits`` paths resolve against;
                defaults to the working directory

        Returns:
            The resolved layout and any warnings

        Raises:
            LayoutParseError: On any fatal problem; see the subclasses
        """
        return self._parse(
            text, source=None, base_dir=Path(base_dir) if base_dir is not None else None
        )

    def _parse(self, text: str, source: Path | None, base_dir: Path | None) -> ParseResult:
        label = str(source) if source is not None else STRING_SOURCE
        _log_stage(ParseStage.START, label)
        try:
            result = self._run(text, source, base_dir, label)
        except LayoutParseError as e:
            if source is not None:
                e.with_file_path(source)
            _log_stage(ParseStage.FAILED, label)
            logger.debug("Parse of %s failed: %s", label, e.message)
            raise

        _log_stage(ParseStage.DONE, label)
        logger.info(
            "Parsed layout '%s' with %d warning(s)",
            result.layout.name,
            result.warning_count,
        )
        return result

    def _run(
        self, text: str, source: Path | None, base_dir: Path | None, label: str
    ) -> ParseResult:
        settings = self.settings

        decoded = deserialize_layout(
            text, warn_unknown_fields=settings.warn_unknown_fields
        )
        _log_stage(ParseStage.DESERIALIZED, label)

        first_pass = validate_decoded(decoded, settings)
        if first_pass.has_errors:
            raise LayoutValidationError(first_pass.errors)
        analyze_panel_graph(decoded.layout, settings.max_nesting_depth)
        _log_stage(ParseStage.STRUCTURALLY_VALID, label)

        if not decoded.layout.inherits:
            final_pass = first_pass
            warnings: list[ValidationIssue] = first_pass.warnings
        else:
            _log_stage(ParseStage.INHERITANCE_RESOLVING, label)
            resolved = self._resolver.resolve(decoded, source, base_dir)
            _log_stage(ParseStage.MERGED, label)

            # Source lines no longer line up with a merged tree
            final_pass = validate_layout(resolved.layout, settings=settings)
            if final_pass.has_errors:
                raise LayoutValidationError(final_pass.errors)
            analyze_panel_graph(resolved.layout, settings.max_nesting_depth)

            root_decode_warnings = [
                issue for issue in decoded.issues if not issue.is_error
            ]
            warnings = [*root_decode_warnings, *resolved.warnings, *final_pass.warnings]
        _log_stage(ParseStage.FINALLY_VALID, label)

        warnings = sort_issues(warnings)
        if settings.strict and warnings:
            raise LayoutValidationError(warnings)

        return ParseResult(layout=final_pass.layout, warnings=tuple(warnings))


def parse_layout_file(
    path: str | Path,
    *,
    loader: LayoutLoaderProtocol | None = None,
    settings: ParserSettings | None = None,
) -> ParseResult:
    """Parse a layout file, resolving its inheritance chain.

    Raises:
        LayoutIOError: If the file or an ancestor cannot be read
        LayoutJSONError: If the file or an ancestor is not valid JSON
        LayoutValidationError: If validation finds fatal issues
        CircularReferenceError: On a panel or inheritance cycle
        MaxDepthExceededError: On too deep panel nesting or inheritance
    """
    return LayoutParser(loader, settings).parse_file(path)


def parse_layout_from_string(
    text: str,
    *,
    base_dir: str | Path | None = None,
    loader: LayoutLoaderProtocol | None = None,
    settings: ParserSettings | None = None,
) -> ParseResult:
    """Parse layout JSON text, resolving its inheritance chain.

    Raises the same errors as :func:`parse_layout_file`.
    """
    return LayoutParser(loader, settings).parse_string(text, base_dir=base_dir)


__all__ = [
    "LayoutParser",
    "ParseStage",
    "parse_layout_file",
    "parse_layout_from_string",
]
