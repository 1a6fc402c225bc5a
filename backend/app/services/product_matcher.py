"""Product name matching for free-text order and bill lines.

Order lines arrive with whatever the customer typed ("mirchi", "Red Chilli
Powder 500g", "turmric"). The matcher scores each catalog product against the
line and returns the best one at or above a threshold:

1. exact match (case-insensitive, trimmed)       -> 1.0
2. one name contains the other                   -> 0.8
3. both names fall in the same synonym group     -> 0.9
4. otherwise normalized Levenshtein similarity   -> 1 - dist / max_len

Checks are evaluated in that order and the first that applies gives the score.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)

EXACT_SCORE = 1.0
SUBSTRING_SCORE = 0.8
SYNONYM_SCORE = 0.9

# canonical name -> regional / alternate names
DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "red chilli powder": ["mirchi", "lal mirch", "red chili powder", "chilli powder", "chili powder"],
    "turmeric powder": ["haldi", "turmeric", "manjal"],
    "coriander powder": ["dhania", "dhaniya", "coriander"],
    "cumin seeds": ["jeera", "zeera", "cumin"],
    "garam masala": ["garam masala powder"],
    "black pepper": ["kali mirch", "pepper", "milagu"],
    "cardamom": ["elaichi", "elachi", "green cardamom"],
    "cloves": ["laung", "lavang", "clove"],
    "mustard seeds": ["rai", "sarson", "mustard"],
    "fenugreek seeds": ["methi", "methi seeds", "fenugreek"],
    "asafoetida": ["hing", "heeng"],
    "fennel seeds": ["saunf", "sombu", "fennel"],
    "cinnamon": ["dalchini", "cinnamon sticks"],
    "dry ginger powder": ["sonth", "saunth"],
}


class NamedProduct(Protocol):
    id: int
    name: str


def normalize_name(name: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    if not name:
        return ""
    cleaned = re.sub(r"[^\w\s]", " ", name.lower())
    return " ".join(cleaned.split())


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def levenshtein_similarity(s1: str, s2: str) -> float:
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 0.0
    return 1.0 - levenshtein_distance(s1, s2) / max_len


@dataclass
class MatcherConfig:
    """Tunable matcher inputs.

    Attributes:
        synonyms: canonical name -> list of aliases. A name belongs to a group
            when it normalizes to the canonical name or one of its aliases.
        threshold: minimum score for a candidate to be accepted.
    """

    synonyms: Dict[str, List[str]] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))
    threshold: float = 0.6


@dataclass
class MatchResult:
    product: NamedProduct
    score: float
    method: str  # exact, substring, synonym, fuzzy


class ProductMatcher:
    """Resolve a free-text item name to the closest catalog product."""

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or MatcherConfig()
        self._groups = self._build_group_index(self.config.synonyms)

    @staticmethod
    def _build_group_index(synonyms: Dict[str, List[str]]) -> Dict[str, int]:
        index: Dict[str, int] = {}
        for group_id, (canonical, aliases) in enumerate(synonyms.items()):
            for term in [canonical, *aliases]:
                key = normalize_name(term)
                if key:
                    index.setdefault(key, group_id)
        return index

    def synonym_group(self, name: str) -> Optional[int]:
        return self._groups.get(normalize_name(name))

    def score(self, item_name: str, product_name: str) -> Tuple[float, str]:
        """Score a single pair. Returns (score, method)."""
        a = normalize_name(item_name)
        b = normalize_name(product_name)
        if not a or not b:
            return 0.0, "none"

        if a == b:
            return EXACT_SCORE, "exact"
        if a in b or b in a:
            return SUBSTRING_SCORE, "substring"

        group_a = self.synonym_group(a)
        if group_a is not None and group_a == self.synonym_group(b):
            return SYNONYM_SCORE, "synonym"

        return levenshtein_similarity(a, b), "fuzzy"

    def best_match(self, item_name: str, candidates: Iterable[NamedProduct]) -> Optional[MatchResult]:
        """Highest scoring candidate at or above the threshold.

        Candidates are ordered by id; on equal scores the first one wins.
        """
        best: Optional[MatchResult] = None
        for product in sorted(candidates, key=lambda p: p.id):
            score, method = self.score(item_name, product.name)
            if score < self.config.threshold:
                continue
            if best is None or score > best.score:
                best = MatchResult(product=product, score=score, method=method)

        if best is None:
            logger.info(f"No product match for '{item_name}' (threshold {self.config.threshold})")
        else:
            logger.debug(
                f"Matched '{item_name}' -> '{best.product.name}' "
                f"(id={best.product.id}, score={best.score:.2f}, method={best.method})"
            )
        return best

    def match(self, item_name: str, candidates: Sequence[NamedProduct]) -> Optional[NamedProduct]:
        result = self.best_match(item_name, candidates)
        return result.product if result else None


def get_product_matcher(threshold: Optional[float] = None) -> ProductMatcher:
    """Matcher configured from application settings."""
    from app.core.config import settings

    return ProductMatcher(MatcherConfig(threshold=threshold if threshold is not None else settings.name_match_threshold))
