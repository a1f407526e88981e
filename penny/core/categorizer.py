# penny/core/categorizer.py
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Tuple

from penny.exceptions import ConfigError

DEFAULT_CATEGORY = "Other"

CATEGORIES = (
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Utilities",
    "Health",
    "Finance",
    DEFAULT_CATEGORY,
)

Rule = Tuple[str, str]

# Ordering matters: the first keyword found in the vendor text wins, so a
# keyword must come before any shorter keyword contained in it.
DEFAULT_RULES: Tuple[Rule, ...] = (
    # Food
    ("uber eats", "Food"),
    ("swiggy", "Food"),
    ("zomato", "Food"),
    ("doordash", "Food"),
    ("grubhub", "Food"),
    ("instacart", "Food"),
    ("mcdonald", "Food"),
    ("starbucks", "Food"),
    ("subway", "Food"),
    ("dominos", "Food"),
    ("pizza hut", "Food"),
    ("kfc", "Food"),
    ("dunkin", "Food"),
    ("chipotle", "Food"),
    ("panera", "Food"),
    ("barbeque nation", "Food"),
    ("haldirams", "Food"),
    # Transport
    ("air india", "Transport"),
    ("make my trip", "Transport"),
    ("makemytrip", "Transport"),
    ("indigo", "Transport"),
    ("spicejet", "Transport"),
    ("redbus", "Transport"),
    ("irctc", "Transport"),
    ("rapido", "Transport"),
    ("uber", "Transport"),
    ("ola", "Transport"),
    ("lyft", "Transport"),
    ("metro", "Transport"),
    ("airways", "Transport"),
    ("airline", "Transport"),
    # Shopping
    ("amazon", "Shopping"),
    ("flipkart", "Shopping"),
    ("myntra", "Shopping"),
    ("ajio", "Shopping"),
    ("nykaa", "Shopping"),
    ("walmart", "Shopping"),
    ("target", "Shopping"),
    ("ebay", "Shopping"),
    ("meesho", "Shopping"),
    # Entertainment
    ("prime video", "Entertainment"),
    ("apple music", "Entertainment"),
    ("netflix", "Entertainment"),
    ("spotify", "Entertainment"),
    ("hotstar", "Entertainment"),
    ("youtube", "Entertainment"),
    ("zee5", "Entertainment"),
    ("sonyliv", "Entertainment"),
    ("steam", "Entertainment"),
    ("playstation", "Entertainment"),
    ("xbox", "Entertainment"),
    # Utilities
    ("tata power", "Utilities"),
    ("bses", "Utilities"),
    ("airtel", "Utilities"),
    ("jio", "Utilities"),
    ("vodafone", "Utilities"),
    ("bsnl", "Utilities"),
    ("electricity", "Utilities"),
    ("water bill", "Utilities"),
    ("gas bill", "Utilities"),
    # Health
    ("apollo", "Health"),
    ("medplus", "Health"),
    ("1mg", "Health"),
    ("netmeds", "Health"),
    ("pharmeasy", "Health"),
    ("cult fit", "Health"),
    ("gym", "Health"),
    ("hospital", "Health"),
    ("clinic", "Health"),
    # Finance
    ("insurance", "Finance"),
    ("lic", "Finance"),
    ("hdfc", "Finance"),
    ("icici", "Finance"),
    ("sbi", "Finance"),
    ("loan", "Finance"),
    ("emi", "Finance"),
)


class KeywordCategorizer:
    """Map vendor text to a category with an ordered substring scan.

    Parameters
    ----------
    rules:
        Ordered ``(keyword, category)`` pairs. The first pair whose keyword
        occurs in the case-folded, trimmed vendor text decides the category.
    default:
        Category returned when nothing matches or the text is blank.
    """

    def __init__(self, rules: Iterable[Rule] = DEFAULT_RULES, default: str = DEFAULT_CATEGORY):
        self._rules: Tuple[Rule, ...] = tuple(
            (keyword.strip().lower(), category) for keyword, category in rules
        )
        self.default = default

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def categorize(self, vendor_name: str | None) -> str:
        if vendor_name is None or not vendor_name.strip():
            return self.default
        name = vendor_name.strip().lower()
        for keyword, category in self._rules:
            if keyword in name:
                return category
        return self.default

    def get_rules(self) -> Mapping[str, str]:
        """Read-only keyword -> category view, for display only."""
        projection: dict[str, str] = {}
        for keyword, category in self._rules:
            projection.setdefault(keyword, category)
        return MappingProxyType(projection)


def rules_from_config(entries: Sequence[object]) -> Tuple[Rule, ...]:
    """Build an ordered rule table from the ``category_rules`` config list.

    Each entry is either a ``{"keyword": ..., "category": ...}`` mapping or a
    two-item ``[keyword, category]`` list.
    """
    rules = []
    for idx, entry in enumerate(entries):
        if isinstance(entry, Mapping):
            keyword, category = entry.get("keyword"), entry.get("category")
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            keyword, category = entry
        else:
            raise ConfigError(f"Unrecognized category rule at position {idx}: {entry!r}")
        if not isinstance(keyword, str) or not keyword.strip():
            raise ConfigError(f"Category rule at position {idx} has no keyword: {entry!r}")
        if not isinstance(category, str) or not category.strip():
            raise ConfigError(f"Category rule at position {idx} has no category: {entry!r}")
        rules.append((keyword, category.strip()))
    return tuple(rules)

