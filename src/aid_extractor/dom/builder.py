# src/aid_extractor/dom/builder.py
import logging
import weakref
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .classifier import Classification, ElementKind, NodeClassifier
from .core import CONTENT_ID_FACT_KIND, ContentFact, ElementState, InvalidInputError, SemanticNode
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)

# Containers whose asset lives on a nested <source>/<img> when they have no src of their own
_MEDIA_CONTAINERS = ("video", "audio", "picture")

_ENTER = "enter"
_EXIT = "exit"


def _attr_text(element: Tag, name: str) -> Optional[str]:
    """Returns an attribute as a stripped string (bs4 may hand back lists)."""
    value = element.attrs.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = " ".join(str(v) for v in value)
    return str(value).strip()


def element_text(element: Tag) -> str:
    """Visible text of an element with runs of whitespace collapsed."""
    return " ".join(element.get_text(" ", strip=True).split())


def resolve_fact_value(element: Tag, registry: SchemaRegistry) -> Tuple[str, str, Optional[str]]:
    """
    Determines the value of a fact-bearing element.

    Precedence: link/media target (reference) -> machine value attribute ->
    element text. Returns (value, source, attribute_name).
    """
    tag_name = element.name

    ref_attr = registry.reference_attributes.get(tag_name)
    if ref_attr:
        ref = _attr_text(element, ref_attr)
        if ref:
            return ref, "reference", ref_attr

    if tag_name in _MEDIA_CONTAINERS:
        for nested in element.find_all(("source", "img")):
            for nested_attr in (registry.reference_attributes.get(nested.name, "src"), "srcset"):
                ref = _attr_text(nested, nested_attr)
                if ref:
                    return ref, "reference", nested_attr

    value_attr = registry.value_attributes.get(tag_name)
    if value_attr:
        value = _attr_text(element, value_attr)
        if value is not None:
            return value, "attribute", value_attr

    return element_text(element), "text", None


@dataclass
class _Draft:
    """Mutable stand-in for a SemanticNode while the traversal is running."""
    classification: Optional[Classification]
    element: Optional[Tag]
    path: str
    facts: List[ContentFact] = field(default_factory=list)
    children: List["_Draft"] = field(default_factory=list)
    frozen: Optional[SemanticNode] = None

    @property
    def has_content_type(self) -> bool:
        return self.classification is not None and self.classification.content_type is not None


@dataclass(frozen=True)
class BuildOutput:
    """The finished semantic tree plus an element -> node lookup."""
    root: SemanticNode
    nodes_by_element: Dict[int, SemanticNode]
    orphan_count: int = 0

    def node_for(self, element: Any) -> Optional[SemanticNode]:
        """Returns the semantic node materialized from a DOM element, if any."""
        return self.nodes_by_element.get(id(element))


class TreeBuilder:
    """
    Builds the semantic tree from a DOM tree in one depth-first pass.

    Two stacks are kept during the walk: the enclosing semantic parent (tree
    shape) and the enclosing content block (fact attachment). Unannotated
    elements are transparent; their children are visited with the same
    context.
    """

    def __init__(self, registry: SchemaRegistry, classifier: Optional[NodeClassifier] = None):
        self.registry = registry
        self.classifier = classifier or NodeClassifier(registry)

    def build(self, root: Any) -> BuildOutput:
        """
        Walks the DOM below (and including) `root` and returns the frozen tree.

        Raises InvalidInputError for a missing or malformed DOM; no partial
        tree is returned in that case.
        """
        if root is None:
            raise InvalidInputError("No DOM root supplied.")
        if not isinstance(root, Tag):
            raise InvalidInputError(f"Expected a DOM element as root, got {type(root).__name__}.")

        document = _Draft(classification=None, element=None, path="")
        drafts: List[_Draft] = [document]
        parents: List[_Draft] = [document]
        content_blocks: List[_Draft] = []
        orphan_count = 0

        # Explicit work stack: deep DOMs must not hit the recursion limit
        work: List[Tuple[str, Tag, str]] = [(_ENTER, root, self._root_path(root))]

        while work:
            action, element, path = work.pop()

            if action == _EXIT:
                draft = parents.pop()
                if draft.has_content_type:
                    content_blocks.pop()
                continue

            classification = self.classifier.classify(element)

            if classification.is_node:
                draft = _Draft(classification=classification, element=element, path=path)
                parents[-1].children.append(draft)
                drafts.append(draft)

                # A structural node naming a fact kind also feeds its nearest content block
                if classification.kind == ElementKind.STRUCTURAL and classification.fact_kind:
                    if not self._attach_fact(
                            classification.fact_kind, element, path, content_blocks, document):
                        orphan_count += 1

                parents.append(draft)
                if draft.has_content_type:
                    content_blocks.append(draft)
                work.append((_EXIT, element, path))

            elif classification.kind == ElementKind.CONTENT_FACT:
                attached = self._attach_fact(
                    classification.fact_kind, element, path, content_blocks, document)
                if classification.content_id and classification.fact_kind != CONTENT_ID_FACT_KIND:
                    self._attach_fact(
                        CONTENT_ID_FACT_KIND, element, path, content_blocks, document,
                        value=classification.content_id)
                # Counted per element, not per fact
                if not attached:
                    orphan_count += 1

            self._push_children(work, element, path)

        root_node = self._freeze(drafts)
        nodes_by_element = {
            id(d.element): d.frozen for d in drafts if d.element is not None
        }
        logger.debug(
            "Semantic tree built: %d nodes, %d orphaned facts.", len(drafts) - 1, orphan_count
        )
        return BuildOutput(root=root_node, nodes_by_element=nodes_by_element, orphan_count=orphan_count)

    def _attach_fact(
            self,
            kind: str,
            element: Tag,
            path: str,
            content_blocks: List[_Draft],
            document: _Draft,
            value: Optional[str] = None,
    ) -> bool:
        """
        Appends a fact to the nearest enclosing content block.
        Falls back to the document root (flagged orphaned); returns False then.
        """
        if value is not None:
            source, attribute = "attribute", CONTENT_ID_FACT_KIND
        elif kind == CONTENT_ID_FACT_KIND:
            value, source, attribute = _attr_text(element, CONTENT_ID_FACT_KIND) or "", "attribute", kind
        else:
            value, source, attribute = resolve_fact_value(element, self.registry)

        owner = content_blocks[-1] if content_blocks else document
        owner.facts.append(ContentFact(
            kind=kind,
            value=value,
            source=source,
            attribute=attribute,
            tag=element.name,
            path=path,
            orphaned=owner is document,
        ))
        return owner is not document

    @staticmethod
    def _root_path(root: Tag) -> str:
        if isinstance(root, BeautifulSoup):
            return ""
        position = 1 + sum(1 for sib in root.find_previous_siblings(root.name) if isinstance(sib, Tag))
        return f"/{root.name}[{position}]"

    @staticmethod
    def _push_children(work: List[Tuple[str, Tag, str]], element: Tag, path: str) -> None:
        """Queues element children so they are popped in document order."""
        seen: Counter = Counter()
        queued = []
        for child in element.children:
            if not isinstance(child, Tag):
                continue
            seen[child.name] += 1
            queued.append((_ENTER, child, f"{path}/{child.name}[{seen[child.name]}]"))
        work.extend(reversed(queued))

    @staticmethod
    def _freeze(drafts: List[_Draft]) -> SemanticNode:
        """
        Converts drafts into immutable nodes, children first.

        `drafts` is in pre-order, so walking it backwards always reaches a
        node after all of its descendants.
        """
        for draft in reversed(drafts):
            c = draft.classification
            node = SemanticNode.model_construct(
                tag=draft.element.name if draft.element is not None else None,
                path=draft.path,
                structural_type=c.structural_type if c else None,
                description=c.description if c else None,
                state=c.state if c else ElementState.NONE,
                content_type=c.content_type if c else None,
                content_id=c.content_id if c else None,
                fact_kind=c.fact_kind if c else None,
                facts=tuple(draft.facts),
                children=tuple(child.frozen for child in draft.children),
            )
            node._source_ref = draft.element
            parent_ref = weakref.ref(node)
            for child in node.children:
                child._parent = parent_ref
            draft.frozen = node
        return drafts[0].frozen
