from typing import List
from ..core import Finding, RuleDefinition, SemanticNode, rule_spec
from ..registry import SchemaRegistry


# --- RULES ---

@rule_spec(codes=["UNKNOWN_STRUCTURAL_TYPE", "UNKNOWN_STATE", "UNKNOWN_CONTENT_TYPE"])
def check_vocabulary(node: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """
    Reports values outside the canonical vocabulary.
    Custom values are valid; these findings are informational only.
    """
    res = []
    paths = (node.path,)

    if node.structural_type is not None and node.structural_type.custom:
        res.append((
            "UNKNOWN_STRUCTURAL_TYPE",
            f"Unrecognized aid-type value '{node.structural_type.value}' kept as custom type",
            paths, "INFO", "VOCABULARY", {"value": node.structural_type.value},
        ))
    if node.state.custom:
        res.append((
            "UNKNOWN_STATE",
            f"Unrecognized aid-state value '{node.state.value}' kept as custom state",
            paths, "INFO", "VOCABULARY", {"value": node.state.value},
        ))
    if node.content_type is not None and node.content_type.custom:
        res.append((
            "UNKNOWN_CONTENT_TYPE",
            f"Unrecognized aid-cnt-type value '{node.content_type.value}' kept as custom content type",
            paths, "INFO", "VOCABULARY", {"value": node.content_type.value},
        ))
    return res


@rule_spec(codes=["UNKNOWN_FACT_KIND"])
def check_fact_kinds(node: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """Reports facts (and node-level fact kinds) using a kind outside the vocabulary."""
    res = []
    for fact in node.facts:
        if not registry.is_known_fact_kind(fact.kind):
            res.append((
                "UNKNOWN_FACT_KIND",
                f"Unrecognized aid-cnt-kind value '{fact.kind}' kept as custom fact kind",
                (fact.path,), "INFO", "VOCABULARY", {"value": fact.kind},
            ))
    # Structural nodes hand their kind on as a fact, reported above on the owner
    if node.is_content_block and node.fact_kind and not registry.is_known_fact_kind(node.fact_kind):
        res.append((
            "UNKNOWN_FACT_KIND",
            f"Unrecognized aid-cnt-kind value '{node.fact_kind}' kept as custom fact kind",
            (node.path,), "INFO", "VOCABULARY", {"value": node.fact_kind},
        ))
    return res


# --- DEFINITIONS ---

DEFINITIONS = [
    RuleDefinition(name="vocabulary", check=check_vocabulary),
    RuleDefinition(name="fact_kinds", check=check_fact_kinds),
]
