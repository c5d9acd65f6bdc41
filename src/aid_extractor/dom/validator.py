# src/aid_extractor/dom/validator.py
import logging
from typing import List

from .core import SemanticNode
from .registry import SchemaRegistry
from ..model import Diagnostic

logger = logging.getLogger(__name__)


class Validator:
    """
    Validation pass over a finished semantic tree.

    Applies the registry's node rules to every node (root first, then
    document order) and its tree rules once afterwards. The pass is pure:
    it never changes the tree and never raises for data-quality problems.
    """

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry
        self.node_rules = registry.rules_for_scope("node")
        self.tree_rules = registry.rules_for_scope("tree")

    def validate(self, root: SemanticNode) -> List[Diagnostic]:
        """
        Runs the full rule suite on a semantic tree.

        Args:
            root (SemanticNode): The synthetic document root returned by the builder.

        Returns:
            List[Diagnostic]: Findings in a deterministic order.
        """
        diagnostics: List[Diagnostic] = []

        def collect(results) -> None:
            # Rules return a list of tuples: [(Code, Msg, Paths, Sev, Cat, Details)]
            for (code, msg, paths, sev, cat, details) in results or []:
                if not self.registry.is_enabled(code):
                    continue
                diagnostics.append(Diagnostic(
                    code=code,
                    severity=sev,
                    category=cat,
                    message=msg,
                    paths=tuple(paths),
                    details=details or {},
                ))

        # --- Node Level Checks ---
        for node in (root, *root.iter_descendants()):
            for rule in self.node_rules:
                collect(rule.check(node, self.registry))

        # --- Tree Level Checks ---
        for rule in self.tree_rules:
            collect(rule.check(root, self.registry))

        logger.debug("Validation finished with %d diagnostics.", len(diagnostics))
        return diagnostics
