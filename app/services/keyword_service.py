"""Default keyword generation and generic-keyword filtering for auto-posts."""
import re
from typing import Iterable, Optional

GENERIC_KEYWORD_BLACKLIST = frozenset([
    "quality service", "customer satisfaction", "professional", "reliable", "trusted",
    "excellent experience", "local business", "community", "best service",
    "development", "quality", "customer", "service", "excellent", "experience",
    "local", "business", "best", "good", "great", "amazing", "awesome", "top",
    "leading", "premier", "expert", "specialists", "solutions", "services",
    "company", "corporation", "inc", "llc", "ltd", "limited", "pvt", "private",
    "consultant", "consulting",
])

# Checked in order; the first key contained in the category wins
CATEGORY_KEYWORDS = {
    "restaurant": ["food", "dining", "cuisine", "menu", "chef", "kitchen"],
    "hotel": ["accommodation", "rooms", "hospitality", "booking", "stay"],
    "retail": ["shopping", "store", "products", "merchandise"],
    "health": ["healthcare", "wellness", "medical", "treatment", "clinic"],
    "beauty": ["salon", "styling", "treatments", "spa"],
    "automotive": ["auto", "repair", "maintenance", "garage"],
    "education": ["school", "training", "classes", "academy"],
    "legal": ["law", "attorney", "legal", "lawyer"],
    "finance": ["financial", "accounting", "tax", "investment"],
    "technology": ["tech", "IT", "software", "digital"],
    "construction": ["building", "renovation", "contractor"],
    "fitness": ["gym", "workout", "fitness", "training"],
}

_NAME_SPLIT_RE = re.compile(r"[\s.,\-_]+")


def is_generic(keyword: str) -> bool:
    return keyword.lower().strip() in GENERIC_KEYWORD_BLACKLIST


def clean_generic_keywords(keywords: Iterable[str]) -> list[str]:
    """Drop blacklisted keywords, keeping order."""
    return [k for k in keywords if not is_generic(k)]


def get_category_keywords(category: str) -> list[str]:
    lower = category.lower()
    for key, keywords in CATEGORY_KEYWORDS.items():
        if key in lower:
            return clean_generic_keywords(keywords)
    return []


def generate_default_keywords(
    business_name: str,
    locality: Optional[str] = None,
    categories: Optional[list[str]] = None,
) -> list[str]:
    """Keywords built from the business name, its city and its categories.

    Order: full name, significant name words, city, "name city", then
    category keywords. Generic terms and duplicates are removed.
    """
    keywords: list[str] = []

    if business_name:
        keywords.append(business_name)
        for part in _NAME_SPLIT_RE.split(business_name.lower()):
            if len(part) > 2 and not is_generic(part):
                keywords.append(part)

    if locality:
        keywords.append(locality)
        if business_name:
            keywords.append(f"{business_name} {locality}")

    for category in categories or []:
        keywords.extend(get_category_keywords(category))

    return list(dict.fromkeys(clean_generic_keywords(keywords)))
