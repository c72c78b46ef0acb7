############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# model_aliases.py: Client model name to Bedrock model id resolution
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Resolve loosely specified Mistral model names to Bedrock model ids.

Resolution order:

1. Names that already look like Bedrock ids (exact ``mistral.`` prefix,
   surrounding whitespace stripped) pass through. They must still be a
   well-formed Bedrock id since they end up in the signed request path.
2. Otherwise the lower-cased name is checked against ``ALIAS_RULES`` in
   declaration order and the first matching substring wins. A more specific
   substring must therefore be declared before any broader one it contains
   (``8x7b`` before ``7b``, ``large-2402`` before ``large``).
3. Nothing matched: ``UnsupportedModel``. There is no default model.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from bedrockgate.app.errors import UnsupportedModel
from bedrockgate.app.logging_config import get_logger

logger = get_logger(__name__)

NATIVE_PREFIX = "mistral."
NATIVE_ID_PATTERN = re.compile(r"^mistral\.[a-z0-9][a-z0-9.-]*(:\d+)?$")


@dataclass(frozen=True)
class AliasRule:
    """Maps any name containing ``substring`` to ``model_id``."""
    substring: str
    model_id: str
    description: str = ""

    def matches(self, normalized_name: str) -> bool:
        return self.substring in normalized_name


# Deliberately reordered: "8x7b" precedes "7b". With the older 7b-first
# order every Mixtral 8x7B name resolved to Mistral 7B.
ALIAS_RULES: Tuple[AliasRule, ...] = (
    AliasRule("8x7b", "mistral.mixtral-8x7b-instruct-v0:1", "Mixtral 8x7B Instruct"),
    AliasRule("7b", "mistral.mistral-7b-instruct-v0:2", "Mistral 7B Instruct"),
    AliasRule("large-2402", "mistral.mistral-large-2402-v1:0", "Mistral Large (Feb 2024)"),
    AliasRule("large", "mistral.mistral-large-2407-v1:0", "Mistral Large 2 (July 2024)"),
    AliasRule("small", "mistral.mistral-small-2402-v1:0", "Mistral Small (Feb 2024)"),
)

KNOWN_MODEL_IDS: Tuple[str, ...] = tuple(rule.model_id for rule in ALIAS_RULES)


class ModelAliasResolver:
    """Map a requested model name to exactly one Bedrock model id."""

    def __init__(
        self,
        rules: Tuple[AliasRule, ...] = ALIAS_RULES,
        validate_native_ids: bool = False,
    ):
        self._rules = rules
        self._validate_native_ids = validate_native_ids
        self._known_ids = {rule.model_id for rule in rules}

    @property
    def rules(self) -> Tuple[AliasRule, ...]:
        return self._rules

    def resolve(self, requested_model: str) -> str:
        """Resolve ``requested_model`` or raise ``UnsupportedModel``."""
        stripped = (requested_model or "").strip()

        if stripped.startswith(NATIVE_PREFIX):
            if self.is_known(stripped):
                return stripped
            if self._validate_native_ids or not NATIVE_ID_PATTERN.match(stripped):
                raise UnsupportedModel(requested_model, self.supported_models())
            logger.warning("native_model_id_passthrough", model=stripped)
            return stripped

        rule = self.match(stripped.lower())
        if rule is None:
            raise UnsupportedModel(requested_model, self.supported_models())
        return rule.model_id

    def is_known(self, model_id: str) -> bool:
        """True if ``model_id`` is one of the rule table's backend ids."""
        return model_id in self._known_ids

    def match(self, normalized_name: str) -> Optional[AliasRule]:
        """Return the first rule matching an already lower-cased name."""
        for rule in self._rules:
            if rule.matches(normalized_name):
                return rule
        return None

    def supported_models(self) -> List[str]:
        """Backend ids reachable through the rule table, in rule order."""
        seen: List[str] = []
        for rule in self._rules:
            if rule.model_id not in seen:
                seen.append(rule.model_id)
        return seen

    def aliases_by_model(self) -> Dict[str, List[str]]:
        """Substrings that resolve to each backend id."""
        aliases: Dict[str, List[str]] = {}
        for rule in self._rules:
            aliases.setdefault(rule.model_id, []).append(rule.substring)
        return aliases
