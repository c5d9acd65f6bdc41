from typing import Dict, List, Tuple
from ..core import ContentType, Finding, RuleDefinition, SemanticNode, StructuralType, rule_spec
from ..registry import SchemaRegistry


@rule_spec(codes=["DUPLICATE_CONTENT_ID"])
def check_duplicate_content_ids(root: SemanticNode, registry: SchemaRegistry) -> List[Finding]:
    """
    Rule: aid-cnt-id must be unique per content type within the nearest
    'content' section (or the whole document when there is none).

    Emits one finding per duplicated id, referencing every node that uses it,
    in document order.
    """
    groups: Dict[Tuple[int, ContentType, str], List[SemanticNode]] = {}
    scopes: Dict[int, SemanticNode] = {id(root): root}

    stack = [(child, root) for child in reversed(root.children)]
    while stack:
        node, scope = stack.pop()

        if node.content_type is not None and node.content_id:
            groups.setdefault((id(scope), node.content_type, node.content_id), []).append(node)

        child_scope = node if node.structural_type == StructuralType.CONTENT else scope
        scopes[id(child_scope)] = child_scope
        stack.extend((child, child_scope) for child in reversed(node.children))

    res = []
    for (scope_id, content_type, content_id), nodes in groups.items():
        if len(nodes) < 2:
            continue
        scope = scopes[scope_id]
        res.append((
            "DUPLICATE_CONTENT_ID",
            f"aid-cnt-id '{content_id}' is used by {len(nodes)} {content_type} blocks",
            tuple(n.path for n in nodes), "WARNING", "IDENTITY",
            {
                "content_id": content_id,
                "content_type": content_type.value,
                "scope": scope.path or "/",
                "count": len(nodes),
            },
        ))
    return res


# --- DEFINITION ---

DEFINITION = RuleDefinition(
    name="duplicate_content_ids",
    check=check_duplicate_content_ids,
    scope="tree",
)
