# src/aid_extractor/dom/query.py
from typing import Dict, List, NamedTuple, Optional, Union

from .core import CONTENT_ID_FACT_KIND, ContentType, ElementState, SemanticNode, StructuralType, VocabularyValue


class ContentIdMatch(NamedTuple):
    """Result of a content id lookup."""
    node: Optional[SemanticNode]  # first match in document order
    duplicated: bool  # more than one node carries the id
    matches: List[SemanticNode]


def _key(value: Union[str, VocabularyValue, None]) -> str:
    """Index key of a vocabulary value; raw strings and models resolve alike."""
    if value is None:
        return ""
    if isinstance(value, VocabularyValue):
        return value.value
    return str(value).strip()


class SemanticIndex:
    """
    Read-only lookup tables over a finished semantic tree.

    Built in one pre-order pass; every query answers from the tables, in
    document order, and never touches the DOM. The synthetic root is not
    part of any result.
    """

    def __init__(self, root: SemanticNode):
        self.root = root
        self.nodes: List[SemanticNode] = []
        self._by_structural_type: Dict[str, List[SemanticNode]] = {}
        self._by_state: Dict[str, List[SemanticNode]] = {}
        self._by_content_type: Dict[str, List[SemanticNode]] = {}
        self._by_content_id: Dict[str, List[SemanticNode]] = {}
        self._by_fact_kind: Dict[str, List[SemanticNode]] = {}

        for node in root.iter_descendants():
            self.nodes.append(node)
            if node.structural_type is not None:
                self._by_structural_type.setdefault(node.structural_type.value, []).append(node)
            self._by_state.setdefault(node.state.value, []).append(node)
            if node.content_type is not None:
                self._by_content_type.setdefault(node.content_type.value, []).append(node)
            # A block is found by its own aid-cnt-id and by any aid-cnt-id leaf it holds
            for content_id in dict.fromkeys([node.content_id, *node.facts_of(CONTENT_ID_FACT_KIND)]):
                if content_id:
                    self._by_content_id.setdefault(content_id, []).append(node)
            for kind in dict.fromkeys(f.kind for f in node.facts):
                self._by_fact_kind.setdefault(kind, []).append(node)

    def find_by_structural_type(self, structural_type: Union[str, StructuralType]) -> List[SemanticNode]:
        return list(self._by_structural_type.get(_key(structural_type), []))

    def find_by_state(self, state: Union[str, ElementState, None]) -> List[SemanticNode]:
        """
        Nodes in the given state. `None`, '' or ElementState.NONE select the
        nodes without an aid-state.
        """
        return list(self._by_state.get(_key(state), []))

    def find_by_content_type(self, content_type: Union[str, ContentType]) -> List[SemanticNode]:
        return list(self._by_content_type.get(_key(content_type), []))

    def find_by_content_id(self, content_id: str) -> ContentIdMatch:
        matches = list(self._by_content_id.get(content_id, []))
        return ContentIdMatch(
            node=matches[0] if matches else None,
            duplicated=len(matches) > 1,
            matches=matches,
        )

    def find_by_fact_kind(self, kind: str) -> List[SemanticNode]:
        """Nodes owning at least one fact of `kind`; orphans stay on the root."""
        return list(self._by_fact_kind.get(kind, []))

    @staticmethod
    def facts_of(node: SemanticNode, kind: str) -> List[str]:
        return node.facts_of(kind)

    def __len__(self) -> int:
        return len(self.nodes)
