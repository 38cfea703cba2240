"""Interest taxonomy and expansion of declared interests into subcategory tokens."""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

from core.config import settings

logger = logging.getLogger(__name__)

SEPARATOR = ":"

# Top-level category -> declared subcategories, in display order
DEFAULT_TAXONOMY: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "theatre": ("drama", "comedy", "musical", "kids", "art", "classic"),
        "movie": ("drama", "comedy", "action", "horror", "sci-fi", "romance", "detective", "arthouse"),
        "concerts": ("rok", "pop", "jazz", "electronic", "classical", "indi", "altenative"),
        "clubs": (),
        "museums": (),
        "landmark": (),
        "suburban": (),
        "tourist": (),
    }
)


@dataclass(frozen=True)
class Taxonomy:
    """Immutable category tree with case-insensitive keys."""

    categories: Mapping[str, tuple[str, ...]]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Iterable[str]]) -> "Taxonomy":
        normalized = {
            str(category).strip().lower(): tuple(str(sub).strip().lower() for sub in subs)
            for category, subs in data.items()
        }
        return cls(MappingProxyType(normalized))

    def subcategory_tokens(self, category: str) -> tuple[str, ...]:
        """Fully-qualified "category:sub" tokens for a category, empty if unknown."""
        key = category.strip().lower()
        return tuple(f"{key}{SEPARATOR}{sub}" for sub in self.categories.get(key, ()))

    def __contains__(self, category: object) -> bool:
        return isinstance(category, str) and category.strip().lower() in self.categories


class InterestExpander:
    """Expands interest tokens against a taxonomy."""

    def __init__(self, taxonomy: Taxonomy) -> None:
        self.taxonomy = taxonomy

    def expand(self, tokens: Iterable[str] | None) -> list[str]:
        """
        Expand bare categories into themselves plus all their subcategories.

        Tokens already containing the separator are kept verbatim, unknown
        categories pass through unchanged, and the result is deduplicated
        case-insensitively with the first occurrence winning.

        Args:
            tokens: Declared interests, e.g. ["theatre", "movie:drama"]

        Returns:
            Expanded, ordered list of tokens
        """
        expanded: list[str] = []
        seen: set[str] = set()

        def _add(token: str) -> None:
            key = token.lower()
            if key not in seen:
                seen.add(key)
                expanded.append(token)

        for token in tokens or ():
            if not token or not token.strip():
                continue
            if SEPARATOR in token:
                _add(token)
                continue
            if token in self.taxonomy:
                _add(token.strip().lower())
                for sub_token in self.taxonomy.subcategory_tokens(token):
                    _add(sub_token)
            else:
                _add(token.strip())

        return expanded

    def expand_keys(self, tokens: Iterable[str] | None) -> set[str]:
        """Lower-cased expansion, for set intersections."""
        return {token.strip().lower() for token in self.expand(tokens)}

    def is_valid(self, token: str | None) -> bool:
        """True for a declared category or a declared "category:subcategory" pair."""
        if not token or not token.strip():
            return False
        if token in self.taxonomy:
            return True

        parts = [part.strip().lower() for part in token.split(SEPARATOR)]
        if len(parts) != 2 or not all(parts):
            return False
        category, sub = parts
        return category in self.taxonomy and sub in self.taxonomy.categories[category]

    def validate_interests(self, tokens: Iterable[str] | None) -> bool:
        """True if every token is valid; an empty list is valid."""
        return all(self.is_valid(token) for token in tokens or ())


def load_taxonomy(path: str | None = None) -> Taxonomy:
    """
    Load the taxonomy from a JSON file of {category: [subcategory, ...]}.

    Falls back to the built-in taxonomy when no path is given.
    """
    if not path:
        return Taxonomy.from_mapping(DEFAULT_TAXONOMY)

    with Path(path).open(encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Taxonomy file {path} must contain a JSON object")

    logger.info(f"Loaded interest taxonomy from {path}: {len(data)} categories")
    return Taxonomy.from_mapping(data)


@lru_cache(maxsize=1)
def get_expander() -> InterestExpander:
    """Process-wide expander, built once from settings."""
    return InterestExpander(load_taxonomy(settings.taxonomy_path))
