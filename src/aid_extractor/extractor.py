# src/aid_extractor/extractor.py
import logging
from typing import Any, Optional

from bs4 import BeautifulSoup

from .dom.builder import TreeBuilder
from .dom.core import InvalidInputError
from .dom.registry import SchemaRegistry
from .dom.validator import Validator
from .model import ExtractionResult

logger = logging.getLogger(__name__)


class AnnotationExtractor:
    """
    Entry point of the engine: DOM in, semantic tree plus diagnostics out.

    The extractor keeps no state between calls; one instance (and its
    registry) can be shared by any number of extractions.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None):
        self.registry = registry or SchemaRegistry.default()
        self.builder = TreeBuilder(self.registry)
        self.validator = Validator(self.registry)

    def extract(self, root: Any, document: Any = None) -> ExtractionResult:
        """
        Builds and validates the semantic tree of an already parsed DOM.

        Args:
            root: A BeautifulSoup document or any bs4 Tag.
            document: Optional object to keep alive alongside the result.

        Raises:
            InvalidInputError: when `root` is missing or malformed.
        """
        output = self.builder.build(root)
        diagnostics = self.validator.validate(output.root)
        logger.debug(
            "Extracted %d semantic nodes with %d diagnostics.", len(output.nodes_by_element), len(diagnostics)
        )
        return ExtractionResult(
            root=output.root,
            diagnostics=tuple(diagnostics),
            document=document if document is not None else root,
        )

    def extract_html(self, html: str) -> ExtractionResult:
        """Parses markup with BeautifulSoup, then extracts from the document."""
        if html is None:
            raise InvalidInputError("No HTML supplied.")
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")
        if not isinstance(html, str):
            raise InvalidInputError(f"Expected HTML text, got {type(html).__name__}.")

        # Basic cleanup of potentially dirty HTML (e.g., BOM)
        clean_html = html.replace('\ufeff', '').strip()
        soup = BeautifulSoup(clean_html, 'html.parser')
        return self.extract(soup, document=soup)


def extract(root: Any, registry: Optional[SchemaRegistry] = None) -> ExtractionResult:
    """Extracts the semantic tree of a parsed DOM with a one-off extractor."""
    return AnnotationExtractor(registry).extract(root)


def extract_html(html: str, registry: Optional[SchemaRegistry] = None) -> ExtractionResult:
    """Extracts the semantic tree of an HTML string with a one-off extractor."""
    return AnnotationExtractor(registry).extract_html(html)
