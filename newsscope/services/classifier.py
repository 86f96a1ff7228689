"""
Topical tagging and source trust.

Both helpers are pure functions over text.  Tagging is a recall oriented
keyword heuristic, not topic modelling; trust is a binary decision based
on the outlet's identity only.
"""

from typing import List

# Declaration order is the scan order, and therefore the tag order.
TAG_VOCABULARY: List[str] = [
    "AI", "Technology", "Politics", "Climate", "Business", "Science", "Health",
    "Sports", "Entertainment", "World", "Space", "Innovation", "Security",
    "Economy", "Energy", "Environment", "Social Media", "Cryptocurrency",
    "Artificial Intelligence", "Machine Learning", "Blockchain", "Startup",
]

MAX_TAGS = 4

TRUSTED_SOURCES = frozenset({
    "The Guardian", "New York Times", "The Verge", "Wired",
    "TechCrunch", "Reuters", "BBC", "CNN", "Washington Post",
    "Bloomberg", "Wall Street Journal", "Engadget", "Ars Technica",
})


def extract_tags(text: str) -> List[str]:
    """Return up to four vocabulary labels found in ``text`` (case-insensitive)."""
    text_lower = (text or "").lower()
    tags: List[str] = []
    for tag in TAG_VOCABULARY:
        if tag.lower() in text_lower:
            tags.append(tag)
            if len(tags) == MAX_TAGS:
                break
    return tags


def is_trusted(source_name: str) -> bool:
    return source_name in TRUSTED_SOURCES
