# tests/dom/test_classifier.py
import pytest
from bs4 import BeautifulSoup

from aid_extractor.dom.classifier import ElementKind, NodeClassifier
from aid_extractor.dom.core import ContentType, ElementState, InvalidInputError, StructuralType
from aid_extractor.dom.registry import SchemaRegistry


@pytest.fixture
def classifier():
    """Een classifier met de standaard registry."""
    return NodeClassifier(SchemaRegistry.default())


def first(html):
    return BeautifulSoup(html, "html.parser").find(True)


def test_unannotated_element(classifier):
    """Elementen zonder aid-* attributen zijn transparant."""
    result = classifier.classify(first('<div class="x" id="y">text</div>'))
    assert result.kind == ElementKind.UNANNOTATED
    assert not result.is_node


def test_structural_node(classifier):
    """aid-type, aid-state en aid-desc maken een structurele node."""
    result = classifier.classify(first('<nav aid-type="nav" aid-state="idle" aid-desc="Main menu"></nav>'))
    assert result.kind == ElementKind.STRUCTURAL
    assert result.structural_type == StructuralType.NAV
    assert result.state == ElementState.IDLE
    assert result.description == "Main menu"


def test_state_only_is_structural(classifier):
    """Alleen een state is al genoeg voor een node."""
    result = classifier.classify(first('<button aid-state="processing"></button>'))
    assert result.kind == ElementKind.STRUCTURAL
    assert result.structural_type is None


def test_merged_structural_and_content_block(classifier):
    """Structurele en content-facetten komen samen op een node."""
    result = classifier.classify(first('<div aid-type="content" aid-cnt-type="product" aid-cnt-id="P1"></div>'))
    assert result.kind == ElementKind.CONTENT_BLOCK
    assert result.structural_type == StructuralType.CONTENT
    assert result.content_type == ContentType.PRODUCT
    assert result.content_id == "P1"


def test_content_type_wins_over_fact_kind(classifier):
    """Een content block heeft voorrang op een fact-leaf."""
    result = classifier.classify(first('<div aid-cnt-type="info" aid-cnt-kind="desc"></div>'))
    assert result.kind == ElementKind.CONTENT_BLOCK
    assert result.fact_kind == "desc"


def test_fact_leaf(classifier):
    """Alleen aid-cnt-kind maakt een fact-leaf."""
    result = classifier.classify(first('<span aid-cnt-kind="price">$3</span>'))
    assert result.kind == ElementKind.CONTENT_FACT
    assert result.fact_kind == "price"


def test_lone_content_id_is_fact(classifier):
    """Een los aid-cnt-id wordt een fact van soort aid-cnt-id."""
    result = classifier.classify(first('<span aid-cnt-id="X1"></span>'))
    assert result.kind == ElementKind.CONTENT_FACT
    assert result.fact_kind == "aid-cnt-id"
    assert result.content_id == "X1"


def test_blank_attributes_count_as_absent(classifier):
    """Lege waarden tellen als afwezig."""
    result = classifier.classify(first('<div aid-type="  " aid-state=""></div>'))
    assert result.kind == ElementKind.UNANNOTATED


def test_values_are_stripped(classifier):
    """Witruimte rond waarden wordt verwijderd."""
    result = classifier.classify(first('<div aid-type=" footer "></div>'))
    assert result.structural_type == StructuralType.FOOTER


def test_non_element_input_raises(classifier):
    """Geen DOM-element is een contractschending."""
    with pytest.raises(InvalidInputError):
        classifier.classify("<div aid-type='nav'></div>")


def test_malformed_attribute_map_raises(classifier):
    """Een attribuutmap die geen mapping is, wordt geweigerd."""
    tag = first('<div aid-type="nav"></div>')
    tag.attrs = [("aid-type", "nav")]
    with pytest.raises(InvalidInputError):
        classifier.classify(tag)


def test_non_string_attribute_value_raises(classifier):
    """aid-* waarden moeten strings zijn."""
    tag = first('<div></div>')
    tag["aid-type"] = ["nav", "header"]
    with pytest.raises(InvalidInputError):
        classifier.classify(tag)
