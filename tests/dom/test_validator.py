# tests/dom/test_validator.py
from bs4 import BeautifulSoup

from aid_extractor.dom.builder import TreeBuilder
from aid_extractor.dom.registry import SchemaRegistry
from aid_extractor.dom.validator import Validator


def run(html, registry=None):
    """Bouwt en valideert een fragment; geeft (root, diagnostics) terug."""
    registry = registry or SchemaRegistry.default()
    root = TreeBuilder(registry).build(BeautifulSoup(html, "html.parser")).root
    return root, Validator(registry).validate(root)


def codes(diagnostics):
    return [d.code for d in diagnostics]


def test_clean_document_has_no_diagnostics():
    """Een correct geannoteerd document levert niets op."""
    _, diagnostics = run(
        '<div aid-type="content"><div aid-cnt-type="product" aid-cnt-id="P1">'
        '<p aid-cnt-kind="price">$10</p></div></div>'
    )
    assert diagnostics == []


def test_duplicate_sibling_ids_give_one_diagnostic():
    """Twee producten met PRD001: beide in de boom, precies een melding."""
    root, diagnostics = run(
        '<div aid-cnt-type="product" aid-cnt-id="PRD001"></div>'
        '<div aid-cnt-type="product" aid-cnt-id="PRD001"></div>'
    )
    assert len(root.children) == 2
    assert codes(diagnostics) == ["DUPLICATE_CONTENT_ID"]

    diag = diagnostics[0]
    assert diag.severity == "WARNING"
    assert diag.paths == ("/div[1]", "/div[2]")
    assert diag.details["content_id"] == "PRD001"
    assert diag.details["count"] == 2


def test_duplicates_in_separate_content_sections_are_allowed():
    """Hetzelfde id in twee verschillende content-secties is geen conflict."""
    _, diagnostics = run(
        '<section aid-type="content"><div aid-cnt-type="product" aid-cnt-id="P"></div></section>'
        '<section aid-type="content"><div aid-cnt-type="product" aid-cnt-id="P"></div></section>'
    )
    assert diagnostics == []


def test_same_id_for_different_content_types_is_allowed():
    """Uniciteit geldt per content type."""
    _, diagnostics = run(
        '<div aid-cnt-type="product" aid-cnt-id="X"></div><div aid-cnt-type="service" aid-cnt-id="X"></div>'
    )
    assert diagnostics == []


def test_nested_duplicates_in_same_section_are_reported():
    """Een geneste dubbele id binnen dezelfde sectie wordt gemeld."""
    _, diagnostics = run(
        '<div aid-type="content">'
        '<div aid-cnt-type="product" aid-cnt-id="Q"><div aid-cnt-type="product" aid-cnt-id="Q"></div></div>'
        '</div>'
    )
    assert codes(diagnostics) == ["DUPLICATE_CONTENT_ID"]
    assert diagnostics[0].details["scope"] == "/div[1]"


def test_orphaned_fact_gives_one_diagnostic():
    """Een prijs zonder content block: een melding, fact blijft bewaard."""
    root, diagnostics = run('<p aid-cnt-kind="price">$5</p>')
    assert codes(diagnostics) == ["ORPHANED_FACT"]
    assert diagnostics[0].paths == ("/p[1]",)
    assert root.facts[0].value == "$5"


def test_orphan_with_kind_and_id_gives_one_diagnostic():
    """Een wees met soort en id levert een melding op, niet twee."""
    root, diagnostics = run('<p aid-cnt-kind="price" aid-cnt-id="P1">$5</p>')
    assert codes(diagnostics) == ["ORPHANED_FACT"]
    assert diagnostics[0].paths == ("/p[1]",)
    assert diagnostics[0].details["kinds"] == ["price", "aid-cnt-id"]
    assert len(root.facts) == 2


def test_unknown_values_are_informational():
    """Onbekende waarden geven INFO-meldingen, geen fouten."""
    _, diagnostics = run(
        '<div aid-type="carousel" aid-state="frozen">'
        '<div aid-cnt-type="event" aid-cnt-id="E1"><span aid-cnt-kind="venue">Hall</span></div>'
        '</div>'
    )
    assert codes(diagnostics) == [
        "UNKNOWN_STRUCTURAL_TYPE", "UNKNOWN_STATE", "UNKNOWN_CONTENT_TYPE", "UNKNOWN_FACT_KIND",
    ]
    assert {d.severity for d in diagnostics} == {"INFO"}


def test_missing_content_id_for_identity_fact():
    """Een product met prijs maar zonder id krijgt een INFO-melding."""
    _, diagnostics = run('<div aid-cnt-type="product"><b aid-cnt-kind="price">3</b></div>')
    assert codes(diagnostics) == ["MISSING_CONTENT_ID"]
    assert diagnostics[0].details["kinds"] == ["price"]


def test_content_id_leaf_counts_as_block_id():
    """Een los aid-cnt-id in het block telt als id van het block."""
    _, diagnostics = run(
        '<div aid-cnt-type="product"><span aid-cnt-id="X9"></span><b aid-cnt-kind="price">3</b></div>'
    )
    assert diagnostics == []


def test_missing_content_id_not_reported_without_identity_fact():
    """Zonder identiteitsfact is een ontbrekend id geen probleem."""
    _, diagnostics = run('<div aid-cnt-type="info"><p aid-cnt-kind="desc">About</p></div>')
    assert diagnostics == []


def test_shadowed_fact_kind_is_reported():
    """aid-cnt-kind op een content block wordt gemeld."""
    _, diagnostics = run('<div aid-cnt-type="info" aid-cnt-id="I" aid-cnt-kind="desc"></div>')
    assert codes(diagnostics) == ["SHADOWED_FACT_KIND"]


def test_registered_value_is_no_longer_unknown():
    """Extra canonieke waarden onderdrukken de INFO-melding."""
    registry = SchemaRegistry.default()
    registry.register_structural_type("carousel")
    _, diagnostics = run('<div aid-type="carousel"></div>', registry)
    assert diagnostics == []


def test_disabled_codes_are_not_emitted():
    """Uitgeschakelde codes worden niet gerapporteerd."""
    registry = SchemaRegistry.from_config({"validation": {"disabled_codes": ["ORPHANED_FACT"]}})
    root, diagnostics = run('<p aid-cnt-kind="price">$5</p>', registry)
    assert diagnostics == []
    assert root.facts[0].orphaned


def test_validation_does_not_change_the_tree():
    """Validatie verwijdert geen nodes of facts."""
    registry = SchemaRegistry.default()
    root = TreeBuilder(registry).build(BeautifulSoup(
        '<div aid-cnt-type="product" aid-cnt-id="D"></div><div aid-cnt-type="product" aid-cnt-id="D"></div>'
        '<p aid-cnt-kind="price">1</p>', "html.parser")).root
    before = root.to_dict()
    Validator(registry).validate(root)
    assert root.to_dict() == before


def test_registry_without_rules_reports_nothing():
    """Een registry zonder regels levert een lege lijst op."""
    _, diagnostics = run('<p aid-cnt-kind="price">$5</p>', SchemaRegistry(rules=[]))
    assert diagnostics == []
