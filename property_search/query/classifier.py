"""Classification of raw search text."""

import re

from .models import QueryClassification

IDENTIFIER_PATTERN = re.compile(r"^[A-Z0-9-]{5,}$", re.IGNORECASE)

STREET_SUFFIXES = (
    "st", "street", "ave", "avenue", "ln", "lane", "rd", "road", "dr", "drive",
    "ct", "court", "blvd", "boulevard", "way", "pl", "place", "cir", "circle",
    "ter", "terrace", "pkwy", "parkway",
)

ADDRESS_PATTERN = re.compile(
    r"^\d+\s+[\w\s]+(?:" + "|".join(STREET_SUFFIXES) + r")?\.?$",
    re.IGNORECASE,
)

# Words that mark an analytic question rather than an address
QUESTION_WORDS = frozenset(
    {
        "what", "which", "who", "how", "when", "where", "show", "find", "list",
        "get", "top", "largest", "biggest", "most", "recent", "latest", "sold",
        "sale", "sales", "over", "under", "between", "greater", "less", "more",
        "than",
    }
)

MAX_NUMBERED_WORDS = 5


def has_question_word(text: str) -> bool:
    """Check whether the text contains an interrogative or aggregation word."""
    words = re.findall(r"[a-z]+", text.lower())
    return any(word in QUESTION_WORDS for word in words)


def is_identifier(text: str) -> bool:
    """Check whether the text looks like a parcel identifier."""
    trimmed = text.strip()
    return bool(IDENTIFIER_PATTERN.match(trimmed)) and not re.search(r"\s", trimmed)


def is_address(text: str) -> bool:
    """Check whether the text looks like a street address."""
    trimmed = text.strip()
    if has_question_word(trimmed):
        return False
    if ADDRESS_PATTERN.match(trimmed):
        return True

    words = trimmed.split()
    return 0 < len(words) <= MAX_NUMBERED_WORDS and words[0].isdigit()


def classify(text: str) -> QueryClassification:
    """Label a raw query as identifier, address or freeform.

    Identifier wins over address, and any question word forces freeform so
    that "306 properties sold last year" is not treated as an address.
    """
    if is_identifier(text):
        return QueryClassification.IDENTIFIER
    if is_address(text):
        return QueryClassification.ADDRESS
    return QueryClassification.FREEFORM
