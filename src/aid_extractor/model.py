from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .dom.core import SemanticNode
from .dom.query import ContentIdMatch, SemanticIndex
from .utils import json_service

SEVERITY_ORDER = {"INFO": 0, "WARNING": 1}


class Diagnostic(BaseModel):
    """
    Data model representing a single finding of the validation pass.
    Diagnostics describe data-quality issues; they never invalidate the tree.
    """
    model_config = ConfigDict(frozen=True)

    code: str  # e.g., 'DUPLICATE_CONTENT_ID', 'ORPHANED_FACT', 'UNKNOWN_STATE'
    severity: str  # 'WARNING' or 'INFO'
    category: str  # e.g., 'IDENTITY', 'STRUCTURE', 'VOCABULARY'

    message: str  # Human-readable description of the issue
    paths: Tuple[str, ...] = ()  # DOM paths of the elements involved, document order
    details: Dict[str, Any] = Field(default_factory=dict)

    def at_least(self, severity: str) -> bool:
        """True when this diagnostic is as severe as `severity` or more."""
        return SEVERITY_ORDER.get(self.severity, 0) >= SEVERITY_ORDER.get(severity.upper(), 0)


@dataclass(frozen=True)
class ExtractionResult:
    """
    Immutable outcome of one extraction: the semantic tree, its diagnostics
    and a query index built over the tree.
    """
    root: SemanticNode
    diagnostics: Tuple[Diagnostic, ...] = ()
    index: Optional[SemanticIndex] = field(default=None, compare=False, repr=False)
    # Keeps a DOM parsed on the caller's behalf alive for source_ref lookups
    document: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.index is None:
            object.__setattr__(self, "index", SemanticIndex(self.root))

    # --- Query API ---

    @property
    def nodes(self) -> List[SemanticNode]:
        return self.index.nodes

    def find_by_structural_type(self, structural_type) -> List[SemanticNode]:
        return self.index.find_by_structural_type(structural_type)

    def find_by_state(self, state) -> List[SemanticNode]:
        return self.index.find_by_state(state)

    def find_by_content_type(self, content_type) -> List[SemanticNode]:
        return self.index.find_by_content_type(content_type)

    def find_by_content_id(self, content_id: str) -> ContentIdMatch:
        return self.index.find_by_content_id(content_id)

    def find_by_fact_kind(self, kind: str) -> List[SemanticNode]:
        return self.index.find_by_fact_kind(kind)

    def facts_of(self, node: SemanticNode, kind: str) -> List[str]:
        return self.index.facts_of(node, kind)

    # --- Diagnostics ---

    def diagnostics_with_code(self, code: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def has_diagnostics(self, severity: str = "INFO") -> bool:
        return any(d.at_least(severity) for d in self.diagnostics)

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root.to_dict(),
            "diagnostics": [d.model_dump(mode="json") for d in self.diagnostics],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json_service.to_json(self.to_dict(), indent=indent)
