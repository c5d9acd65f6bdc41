# tests/dom/test_query.py
import pytest
from bs4 import BeautifulSoup

from aid_extractor.dom.builder import TreeBuilder
from aid_extractor.dom.core import ContentType, ElementState, StructuralType
from aid_extractor.dom.query import SemanticIndex
from aid_extractor.dom.registry import SchemaRegistry

PAGE = """
<header aid-type="header" aid-desc="Site header"><nav aid-type="nav" aid-state="idle"></nav></header>
<main aid-type="content">
  <div aid-cnt-type="product" aid-cnt-id="PRD001" aid-state="loading">
    <h2 aid-cnt-kind="desc">Kettle</h2>
    <span aid-cnt-kind="price">$20</span>
    <span aid-cnt-kind="opt">red</span><span aid-cnt-kind="opt">blue</span>
  </div>
  <div aid-cnt-type="product" aid-cnt-id="PRD001"><span aid-cnt-kind="price">$25</span></div>
  <div aid-cnt-type="service" aid-cnt-id="SRV1" aid-state="done"><p aid-cnt-kind="terms">30 days</p></div>
  <div aid-type="widget"></div>
</main>
<footer aid-type="footer"></footer>
"""


@pytest.fixture
def index():
    """Een index over een kleine productpagina."""
    registry = SchemaRegistry.default()
    root = TreeBuilder(registry).build(BeautifulSoup(PAGE, "html.parser")).root
    return SemanticIndex(root)


def test_index_excludes_root(index):
    """De synthetische root is geen zoekresultaat."""
    assert len(index) == 8
    assert all(not node.is_root for node in index.nodes)


def test_find_by_structural_type(index):
    """Zoeken op structuurtype, met model of met string."""
    headers = index.find_by_structural_type(StructuralType.HEADER)
    assert [n.description for n in headers] == ["Site header"]
    assert index.find_by_structural_type("header") == headers
    assert len(index.find_by_structural_type("content")) == 1
    assert index.find_by_structural_type("modal") == []


def test_find_custom_structural_type(index):
    """Custom waarden zijn ook doorzoekbaar."""
    widgets = index.find_by_structural_type("widget")
    assert len(widgets) == 1
    assert widgets[0].structural_type.custom


def test_find_by_state(index):
    """Zoeken op state; NONE geeft nodes zonder aid-state."""
    assert [n.content_id for n in index.find_by_state(ElementState.LOADING)] == ["PRD001"]
    assert [n.tag for n in index.find_by_state("idle")] == ["nav"]
    assert len(index.find_by_state(ElementState.NONE)) == 5
    assert index.find_by_state(None) == index.find_by_state(ElementState.NONE)


def test_find_by_content_type(index):
    """Zoeken op content type in documentvolgorde."""
    products = index.find_by_content_type(ContentType.PRODUCT)
    assert [n.facts_of("price") for n in products] == [["$20"], ["$25"]]
    assert len(index.find_by_content_type("service")) == 1


def test_find_by_content_id_flags_duplicates(index):
    """De eerste match wordt teruggegeven, met een vlag voor duplicaten."""
    match = index.find_by_content_id("PRD001")
    assert match.duplicated
    assert match.node is match.matches[0]
    assert match.node.facts_of("desc") == ["Kettle"]
    assert len(match.matches) == 2


def test_find_by_content_id_unique_and_missing(index):
    """Unieke en onbekende ids."""
    match = index.find_by_content_id("SRV1")
    assert match.node.content_type == ContentType.SERVICE
    assert not match.duplicated

    missing = index.find_by_content_id("nope")
    assert missing.node is None
    assert not missing.duplicated
    assert missing.matches == []


def test_facts_of_preserves_order(index):
    """facts_of geeft waarden in documentvolgorde."""
    product = index.find_by_content_id("PRD001").node
    assert index.facts_of(product, "opt") == ["red", "blue"]
    assert index.facts_of(product, "sound") == []


def test_find_by_fact_kind(index):
    """Nodes met minstens een fact van een soort."""
    assert [n.content_id for n in index.find_by_fact_kind("price")] == ["PRD001", "PRD001"]
    assert [n.content_id for n in index.find_by_fact_kind("terms")] == ["SRV1"]


def test_results_are_copies(index):
    """Het wijzigen van een resultaatlijst raakt de index niet."""
    index.find_by_content_type("product").clear()
    assert len(index.find_by_content_type("product")) == 2


def test_find_by_content_id_from_id_leaf():
    """Een block is ook vindbaar via een los aid-cnt-id element."""
    registry = SchemaRegistry.default()
    root = TreeBuilder(registry).build(BeautifulSoup(
        '<div aid-cnt-type="product"><span aid-cnt-id="X9"></span><b aid-cnt-kind="price">3</b></div>',
        "html.parser")).root
    match = SemanticIndex(root).find_by_content_id("X9")
    assert match.node is root.children[0]
    assert match.node.facts_of("price") == ["3"]
    assert not match.duplicated
