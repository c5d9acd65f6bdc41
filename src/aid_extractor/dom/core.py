# src/aid_extractor/dom/core.py
import weakref
from typing import Any, Callable, ClassVar, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from bs4 import Tag


# --- Attribute vocabulary (wire contract, case-sensitive) ---
ATTR_TYPE = "aid-type"
ATTR_DESC = "aid-desc"
ATTR_STATE = "aid-state"
ATTR_CONTENT_TYPE = "aid-cnt-type"
ATTR_CONTENT_ID = "aid-cnt-id"
ATTR_CONTENT_KIND = "aid-cnt-kind"

AID_ATTRIBUTES = (
    ATTR_TYPE, ATTR_DESC, ATTR_STATE,
    ATTR_CONTENT_TYPE, ATTR_CONTENT_ID, ATTR_CONTENT_KIND,
)

# Fact kind used when an element only carries an aid-cnt-id
CONTENT_ID_FACT_KIND = ATTR_CONTENT_ID


class InvalidInputError(ValueError):
    """Raised when the DOM handed to the engine violates its input contract."""


def rule_spec(codes: List[str]):
    """
    Decorator to declare which diagnostic codes a validation rule can emit.
    Facilitates auto-discovery by the SchemaRegistry.
    """
    def decorator(func):
        func.defined_codes = codes
        return func
    return decorator


# --- Open vocabularies ---

class VocabularyValue(BaseModel):
    """
    A value from one of the aid-* vocabularies.

    Recognized literals map onto canonical values; anything else is kept as a
    custom value carrying the raw attribute text.
    """
    model_config = ConfigDict(frozen=True)

    value: str
    custom: bool = False

    @classmethod
    def of(cls, value: str, custom: bool = False):
        return cls(value=value, custom=custom)

    def __str__(self) -> str:
        return f"custom({self.value})" if self.custom else self.value


class StructuralType(VocabularyValue):
    HEADER: ClassVar["StructuralType"]
    FOOTER: ClassVar["StructuralType"]
    SIDEBAR: ClassVar["StructuralType"]
    CONTENT: ClassVar["StructuralType"]
    SECTION: ClassVar["StructuralType"]
    NAV: ClassVar["StructuralType"]
    FORM: ClassVar["StructuralType"]
    MODAL: ClassVar["StructuralType"]
    TOOLTIP: ClassVar["StructuralType"]
    INTERACTIVE: ClassVar["StructuralType"]


class ElementState(VocabularyValue):
    IDLE: ClassVar["ElementState"]
    LOADING: ClassVar["ElementState"]
    PROCESSING: ClassVar["ElementState"]
    WAIT: ClassVar["ElementState"]
    DONE: ClassVar["ElementState"]
    NONE: ClassVar["ElementState"]

    @property
    def is_none(self) -> bool:
        """True when the element carries no aid-state attribute."""
        return not self.custom and self.value == ""

    def __str__(self) -> str:
        return "none" if self.is_none else super().__str__()


class ContentType(VocabularyValue):
    PRODUCT: ClassVar["ContentType"]
    SERVICE: ClassVar["ContentType"]
    INFO: ClassVar["ContentType"]


STRUCTURAL_TYPES = ("header", "footer", "sidebar", "content", "section",
                    "nav", "form", "modal", "tooltip", "interactive")
ELEMENT_STATES = ("idle", "loading", "processing", "wait", "done")
CONTENT_TYPES = ("product", "service", "info")
FACT_KINDS = ("price", "char", "terms", "desc", "opt", "pic", "vid", "sound",
              "rating", "comment", "statistic", "sim", CONTENT_ID_FACT_KIND)

for _literal in STRUCTURAL_TYPES:
    setattr(StructuralType, _literal.upper(), StructuralType.of(_literal))
for _literal in ELEMENT_STATES:
    setattr(ElementState, _literal.upper(), ElementState.of(_literal))
ElementState.NONE = ElementState.of("")
for _literal in CONTENT_TYPES:
    setattr(ContentType, _literal.upper(), ContentType.of(_literal))


# --- Facts & nodes ---

class ContentFact(BaseModel):
    """A loosely typed key/value annotation owned by an enclosing content block."""
    model_config = ConfigDict(frozen=True)

    kind: str
    value: str = ""
    source: str = "text"  # 'text', 'attribute' or 'reference'
    attribute: Optional[str] = None
    tag: Optional[str] = None
    path: str = ""
    orphaned: bool = False


class SemanticNode(BaseModel):
    """
    Immutable unit of meaning derived from one annotated DOM element.

    The synthetic document root has no source element; it is the only node
    that may hold orphaned facts.
    """
    model_config = ConfigDict(frozen=True)

    tag: Optional[str] = None
    path: str = ""
    structural_type: Optional[StructuralType] = None
    description: Optional[str] = None
    state: ElementState = Field(default_factory=lambda: ElementState.NONE)
    content_type: Optional[ContentType] = None
    content_id: Optional[str] = None
    fact_kind: Optional[str] = None
    facts: Tuple[ContentFact, ...] = ()
    children: Tuple["SemanticNode", ...] = ()

    _source_ref: Optional[Tag] = PrivateAttr(default=None)
    _parent: Optional[weakref.ReferenceType] = PrivateAttr(default=None)

    # Equality covers the semantic fields only; the DOM reference and the
    # parent link are identity data. Walks both trees with an explicit stack.
    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SemanticNode):
            return NotImplemented
        pending = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left is right:
                continue
            if len(left.children) != len(right.children):
                return False
            if any(getattr(left, name) != getattr(right, name) for name in _NODE_FIELDS):
                return False
            pending.extend(zip(left.children, right.children))
        return True

    def __hash__(self) -> int:
        return hash((self.path, self.content_id))

    @property
    def source_ref(self) -> Optional[Tag]:
        """The originating DOM element (read-only, never mutated)."""
        return self._source_ref

    @property
    def parent(self) -> Optional["SemanticNode"]:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self._source_ref is None and self.tag is None

    @property
    def is_content_block(self) -> bool:
        return self.content_type is not None

    def ancestors(self) -> Iterator["SemanticNode"]:
        """Yields the parent chain, nearest first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def nearest_content_block(self) -> Optional["SemanticNode"]:
        """Nearest strict ancestor carrying a content type."""
        for node in self.ancestors():
            if node.is_content_block:
                return node
        return None

    def iter_descendants(self) -> Iterator["SemanticNode"]:
        """Pre-order walk of the subtree below this node (document order)."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def facts_of(self, kind: str) -> List[str]:
        return [fact.value for fact in self.facts if fact.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-ready nested dict of the subtree. Built children first over the
        pre-order node list, so depth is not bounded by the serializer.
        """
        nodes = [self, *self.iter_descendants()]
        dumped: Dict[int, Dict[str, Any]] = {}
        for node in reversed(nodes):
            data = node.model_dump(mode="json", exclude_none=True, exclude={"children"})
            data["children"] = [dumped[id(child)] for child in node.children]
            dumped[id(node)] = data
        return dumped[id(self)]


# Semantic fields compared node by node; children are walked separately
_NODE_FIELDS = tuple(name for name in SemanticNode.model_fields if name != "children")


# Type alias for validation findings: (Code, Message, Paths, Severity, Category, Details)
Finding = Tuple[str, str, Tuple[str, ...], str, str, Dict[str, Any]]


class RuleDefinition:
    """
    Configuration object binding a validation check to its scope and codes.

    'node' rules are applied to every node of the tree (root included);
    'tree' rules receive the root once, after the node pass.
    """

    def __init__(
            self,
            name: str,
            check: Callable[..., List[Finding]],
            scope: str = "node",
            possible_codes: Optional[List[str]] = None
    ):
        if scope not in ("node", "tree"):
            raise ValueError(f"Unknown rule scope: {scope}")
        self.name = name
        self.check = check
        self.scope = scope

        # --- Auto-Discovery of Diagnostic Codes ---
        final_codes = set(possible_codes or [])
        if hasattr(check, 'defined_codes'):
            final_codes.update(check.defined_codes)

        self.codes = sorted(final_codes)

    def __repr__(self) -> str:
        return f"RuleDefinition({self.name!r}, scope={self.scope!r}, codes={self.codes})"
