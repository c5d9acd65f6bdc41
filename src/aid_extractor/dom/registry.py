# src/aid_extractor/dom/registry.py
import importlib
import pkgutil
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .core import (
    CONTENT_TYPES, ELEMENT_STATES, FACT_KINDS, STRUCTURAL_TYPES,
    ContentType, ElementState, RuleDefinition, StructuralType,
)

logger = logging.getLogger(__name__)

# Tag -> attribute whose value points at an external asset or link target
DEFAULT_REFERENCE_ATTRIBUTES: Dict[str, str] = {
    "a": "href",
    "area": "href",
    "link": "href",
    "img": "src",
    "video": "src",
    "audio": "src",
    "source": "src",
    "track": "src",
    "iframe": "src",
    "embed": "src",
    "object": "data",
}

# Tag -> attribute carrying a machine readable value
DEFAULT_VALUE_ATTRIBUTES: Dict[str, str] = {
    "meta": "content",
    "data": "value",
    "input": "value",
    "meter": "value",
    "progress": "value",
    "time": "datetime",
}

# Facts that only make sense on an identifiable content block
DEFAULT_IDENTITY_FACT_KINDS: Tuple[str, ...] = ("price", "terms")

RULES_PACKAGE = "aid_extractor.dom.rules"


def discover_rules(package: str = RULES_PACKAGE) -> List[RuleDefinition]:
    """
    Collects the RuleDefinitions declared by the modules of a rules package.

    Every module exposing a DEFINITIONS list (or a single DEFINITION) of
    RuleDefinition instances contributes its rules, in module name order.
    """
    found: List[RuleDefinition] = []
    try:
        rules_pkg = importlib.import_module(package)
    except ImportError as e:
        logger.error(f"Could not find rules package '{package}': {e}")
        return found

    for _, name, _ in sorted(pkgutil.iter_modules(rules_pkg.__path__), key=lambda m: m[1]):
        full_name = f"{package}.{name}"
        try:
            module = importlib.import_module(full_name)
        except Exception as e:
            logger.error(f"Error loading rule module {name}: {e}")
            continue

        definitions = list(getattr(module, "DEFINITIONS", []))
        if isinstance(getattr(module, "DEFINITION", None), RuleDefinition):
            definitions.append(module.DEFINITION)

        for defn in definitions:
            if isinstance(defn, RuleDefinition):
                found.append(defn)
                logger.debug(f"Rule loaded: {defn.name} ({', '.join(defn.codes)})")
    return found


class SchemaRegistry:
    """
    Vocabulary and rule configuration for one or more extractions.

    Maps raw aid-* attribute values onto canonical vocabulary values (unknown
    values become custom values, never errors) and carries the rule set the
    Validator runs. A registry is meant to be configured up front and then
    shared read-only between extractions.
    """

    def __init__(
            self,
            structural_types: Iterable[str] = STRUCTURAL_TYPES,
            states: Iterable[str] = ELEMENT_STATES,
            content_types: Iterable[str] = CONTENT_TYPES,
            fact_kinds: Iterable[str] = FACT_KINDS,
            identity_fact_kinds: Iterable[str] = DEFAULT_IDENTITY_FACT_KINDS,
            reference_attributes: Optional[Mapping[str, str]] = None,
            value_attributes: Optional[Mapping[str, str]] = None,
            rules: Optional[List[RuleDefinition]] = None,
            disabled_codes: Iterable[str] = (),
    ):
        self._structural_types: Set[str] = set(structural_types)
        self._states: Set[str] = set(states)
        self._content_types: Set[str] = set(content_types)
        self._fact_kinds: Set[str] = set(fact_kinds)
        self.identity_fact_kinds: Set[str] = set(identity_fact_kinds)
        self.reference_attributes: Dict[str, str] = dict(
            DEFAULT_REFERENCE_ATTRIBUTES if reference_attributes is None else reference_attributes
        )
        self.value_attributes: Dict[str, str] = dict(
            DEFAULT_VALUE_ATTRIBUTES if value_attributes is None else value_attributes
        )
        self._rules: List[RuleDefinition] = list(discover_rules() if rules is None else rules)
        self.disabled_codes: Set[str] = set(disabled_codes)

    # --- Construction ---

    @classmethod
    def default(cls) -> "SchemaRegistry":
        """Registry with the built-in vocabulary and every discovered rule."""
        return cls()

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "SchemaRegistry":
        """
        Builds a registry from a settings mapping.

        Reads the 'vocabulary' and 'validation' sections; values listed under
        vocabulary.* extend the built-in canonical values, and the attribute
        maps are merged over the defaults.
        """
        config = config or {}
        vocab = config.get("vocabulary") or {}
        validation = config.get("validation") or {}

        reference_attributes = dict(DEFAULT_REFERENCE_ATTRIBUTES)
        reference_attributes.update(vocab.get("reference_attributes") or {})
        value_attributes = dict(DEFAULT_VALUE_ATTRIBUTES)
        value_attributes.update(vocab.get("value_attributes") or {})

        registry = cls(
            structural_types=(*STRUCTURAL_TYPES, *(vocab.get("structural_types") or [])),
            states=(*ELEMENT_STATES, *(vocab.get("states") or [])),
            content_types=(*CONTENT_TYPES, *(vocab.get("content_types") or [])),
            fact_kinds=(*FACT_KINDS, *(vocab.get("fact_kinds") or [])),
            identity_fact_kinds=vocab.get("identity_fact_kinds") or DEFAULT_IDENTITY_FACT_KINDS,
            reference_attributes=reference_attributes,
            value_attributes=value_attributes,
            disabled_codes=validation.get("disabled_codes") or (),
        )
        logger.debug(
            "SchemaRegistry configured: %d structural types, %d states, %d content types, %d fact kinds.",
            len(registry._structural_types), len(registry._states),
            len(registry._content_types), len(registry._fact_kinds),
        )
        return registry

    # --- Registration of extra canonical values ---

    def register_structural_type(self, value: str) -> None:
        self._structural_types.add(self._require(value))

    def register_state(self, value: str) -> None:
        self._states.add(self._require(value))

    def register_content_type(self, value: str) -> None:
        self._content_types.add(self._require(value))

    def register_fact_kind(self, value: str) -> None:
        self._fact_kinds.add(self._require(value))

    @staticmethod
    def _require(raw: Optional[str]) -> str:
        value = (raw or "").strip()
        if not value:
            raise ValueError("Vocabulary values cannot be empty.")
        return value

    # --- Classification ---

    def classify_structural_type(self, raw: str) -> StructuralType:
        value = self._require(raw)
        return StructuralType.of(value, custom=value not in self._structural_types)

    def classify_state(self, raw: Optional[str]) -> ElementState:
        """Maps an aid-state value; a missing or blank value means no state."""
        value = (raw or "").strip()
        if not value:
            return ElementState.NONE
        return ElementState.of(value, custom=value not in self._states)

    def classify_content_type(self, raw: str) -> ContentType:
        value = self._require(raw)
        return ContentType.of(value, custom=value not in self._content_types)

    def classify_fact_kind(self, raw: str) -> Tuple[str, bool]:
        """Returns the fact kind and whether it belongs to the known vocabulary."""
        value = self._require(raw)
        return value, value in self._fact_kinds

    def is_known_fact_kind(self, kind: str) -> bool:
        return kind in self._fact_kinds

    # --- Rules ---

    @property
    def rules(self) -> List[RuleDefinition]:
        """Rules the Validator runs, in registration order."""
        return list(self._rules)

    def rules_for_scope(self, scope: str) -> List[RuleDefinition]:
        return [rule for rule in self._rules if rule.scope == scope]

    def is_enabled(self, code: str) -> bool:
        return code not in self.disabled_codes

    def all_codes(self) -> List[str]:
        """
        Returns every diagnostic code the registered rules can emit.
        Disabled codes are included; filtering happens at validation time.
        """
        codes: Set[str] = set()
        for rule in self._rules:
            codes.update(rule.codes)
        return sorted(codes)
