# src/aid_extractor/dom/classifier.py
from enum import Enum
from typing import Any, Mapping, Optional

from bs4 import Tag
from pydantic import BaseModel, ConfigDict

from .core import (
    AID_ATTRIBUTES, ATTR_CONTENT_ID, ATTR_CONTENT_KIND, ATTR_CONTENT_TYPE,
    ATTR_DESC, ATTR_STATE, ATTR_TYPE, CONTENT_ID_FACT_KIND,
    ContentType, ElementState, InvalidInputError, StructuralType,
)
from .registry import SchemaRegistry


class ElementKind(str, Enum):
    STRUCTURAL = "structural"
    CONTENT_BLOCK = "content_block"
    CONTENT_FACT = "content_fact"
    UNANNOTATED = "unannotated"


class Classification(BaseModel):
    """Outcome of classifying a single DOM element."""
    model_config = ConfigDict(frozen=True)

    kind: ElementKind
    structural_type: Optional[StructuralType] = None
    description: Optional[str] = None
    state: ElementState = ElementState.NONE
    content_type: Optional[ContentType] = None
    content_id: Optional[str] = None
    fact_kind: Optional[str] = None

    @property
    def is_node(self) -> bool:
        return self.kind in (ElementKind.STRUCTURAL, ElementKind.CONTENT_BLOCK)


UNANNOTATED = Classification(kind=ElementKind.UNANNOTATED)


def read_aid_attributes(element: Any) -> dict:
    """
    Reads the recognized aid-* attributes of an element.

    Values are whitespace-stripped and blank values are dropped, so a blank
    attribute behaves like an absent one. Raises InvalidInputError when the
    element or its attribute map does not honour the input contract.
    """
    if not isinstance(element, Tag):
        raise InvalidInputError(f"Expected a DOM element, got {type(element).__name__}.")

    attrs = element.attrs
    if not isinstance(attrs, Mapping):
        raise InvalidInputError(
            f"Attribute map of <{element.name}> is a {type(attrs).__name__}, expected a mapping."
        )

    found = {}
    for name in AID_ATTRIBUTES:
        if name not in attrs:
            continue
        raw = attrs[name]
        if raw is None:
            continue
        if not isinstance(raw, str):
            raise InvalidInputError(
                f"Attribute '{name}' of <{element.name}> must be a string, got {type(raw).__name__}."
            )
        value = raw.strip()
        if value:
            found[name] = value
    return found


class NodeClassifier:
    """
    Decides what a DOM element contributes to the semantic tree.

    Content blocks win over fact leaves: an element carrying aid-cnt-type is
    always a node, and its structural facets are merged onto the same node.
    """

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def classify(self, element: Any) -> Classification:
        found = read_aid_attributes(element)
        if not found:
            return UNANNOTATED

        registry = self.registry
        structural_type = (
            registry.classify_structural_type(found[ATTR_TYPE]) if ATTR_TYPE in found else None
        )
        state = registry.classify_state(found.get(ATTR_STATE))
        description = found.get(ATTR_DESC)
        content_id = found.get(ATTR_CONTENT_ID)
        fact_kind = found.get(ATTR_CONTENT_KIND)

        if ATTR_CONTENT_TYPE in found:
            return Classification(
                kind=ElementKind.CONTENT_BLOCK,
                structural_type=structural_type,
                description=description,
                state=state,
                content_type=registry.classify_content_type(found[ATTR_CONTENT_TYPE]),
                content_id=content_id,
                fact_kind=fact_kind,
            )

        if structural_type is not None or description is not None or not state.is_none:
            return Classification(
                kind=ElementKind.STRUCTURAL,
                structural_type=structural_type,
                description=description,
                state=state,
                content_id=content_id,
                fact_kind=fact_kind,
            )

        if fact_kind is not None:
            return Classification(kind=ElementKind.CONTENT_FACT, fact_kind=fact_kind, content_id=content_id)

        # Only aid-cnt-id is left: the element states an identifier for its block
        return Classification(
            kind=ElementKind.CONTENT_FACT,
            fact_kind=CONTENT_ID_FACT_KIND,
            content_id=content_id,
        )
