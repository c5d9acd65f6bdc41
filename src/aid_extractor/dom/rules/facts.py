from typing import Dict, List
from ..core import CONTENT_ID_FACT_KIND, ContentFact, Finding, RuleDefinition, SemanticNode, rule_spec
from ..registry import SchemaRegistry


# --- RULES ---

@rule_spec(codes=["ORPHANED_FACT"])
def check_orphaned_facts(node: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """
    Rule: a content fact needs an enclosing content block.
    Orphans are parked on the document root by the builder, so only the root
    can hold them. One finding per source element, even when the element
    contributed several facts (e.g. a kind and an aid-cnt-id).
    """
    if not node.is_root:
        return []

    by_element: Dict[str, List[ContentFact]] = {}
    for fact in node.facts:
        if fact.orphaned:
            by_element.setdefault(fact.path, []).append(fact)

    res = []
    for path, facts in by_element.items():
        first = facts[0]
        res.append((
            "ORPHANED_FACT",
            f"Content fact '{first.kind}' on <{first.tag}> has no enclosing content block",
            (path,), "WARNING", "STRUCTURE",
            {"kind": first.kind, "value": first.value, "kinds": [f.kind for f in facts]},
        ))
    return res


@rule_spec(codes=["MISSING_CONTENT_ID"])
def check_identity_facts(node: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """
    A content block holding identity-bearing facts (e.g. a price) should
    carry an id so consumers can refer to it. A nested aid-cnt-id leaf
    counts as one.
    """
    if not node.is_content_block or node.content_id:
        return []
    if node.facts_of(CONTENT_ID_FACT_KIND):
        return []

    kinds = sorted({f.kind for f in node.facts if f.kind in registry.identity_fact_kinds})
    if not kinds:
        return []

    return [(
        "MISSING_CONTENT_ID",
        f"{node.content_type} block carries {', '.join(kinds)} but no aid-cnt-id",
        (node.path,), "INFO", "IDENTITY",
        {"content_type": node.content_type.value, "kinds": kinds},
    )]


@rule_spec(codes=["SHADOWED_FACT_KIND"])
def check_shadowed_fact_kind(node: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """
    aid-cnt-kind on a content block does not produce a fact: the element is a
    block in its own right.
    """
    if node.is_content_block and node.fact_kind:
        return [(
            "SHADOWED_FACT_KIND",
            f"aid-cnt-kind '{node.fact_kind}' ignored on {node.content_type} block",
            (node.path,), "INFO", "STRUCTURE",
            {"kind": node.fact_kind},
        )]
    return []


# --- DEFINITIONS ---

DEFINITIONS = [
    RuleDefinition(name="orphaned_facts", check=check_orphaned_facts),
    RuleDefinition(name="identity_facts", check=check_identity_facts),
    RuleDefinition(name="shadowed_fact_kind", check=check_shadowed_fact_kind),
]
