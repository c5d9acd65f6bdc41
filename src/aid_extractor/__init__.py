"""Semantic annotation extraction for aid-* annotated HTML."""
from .dom.core import (
    ContentFact,
    ContentType,
    ElementState,
    InvalidInputError,
    SemanticNode,
    StructuralType,
)
from .dom.query import ContentIdMatch, SemanticIndex
from .dom.registry import SchemaRegistry
from .extractor import AnnotationExtractor, extract, extract_html
from .model import Diagnostic, ExtractionResult

__all__ = [
    "AnnotationExtractor",
    "ContentFact",
    "ContentIdMatch",
    "ContentType",
    "Diagnostic",
    "ElementState",
    "ExtractionResult",
    "InvalidInputError",
    "SchemaRegistry",
    "SemanticIndex",
    "SemanticNode",
    "StructuralType",
    "extract",
    "extract_html",
]
