"""Detection of unrestricted (always-true) filter predicates.

Generated filters are untrusted. A predicate such as ``1=1`` would pull the
whole parcel layer, so such filters are refused before they reach a feature
service. The check is a fixed list of degenerate shapes, not a SQL
evaluator: ``FIELD > -999999999`` passes.
"""

import re

from property_search.exceptions import UnrestrictedFilterError

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)"
_NUMERIC_EQUALITY = re.compile(rf"^({_NUMBER})\s*=\s*({_NUMBER})$")
_STRING_EQUALITY = re.compile(r"^'((?:[^']|'')*)'\s*=\s*'((?:[^']|'')*)'$")
_TRUE_LITERALS = {"1", "true", "not false"}
_QUOTED = re.compile(r"('(?:[^']|'')*')")


def _collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs outside single-quoted literals."""
    parts = _QUOTED.split(text)
    # Odd positions are the quoted literals
    return "".join(
        part if i % 2 else re.sub(r"\s+", " ", part) for i, part in enumerate(parts)
    ).strip()


def _strip_parentheses(text: str) -> str:
    """Remove parentheses that wrap the whole expression."""
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        for i, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            # Closed before the end: "(a) = (b)" is not wrapped
            if depth == 0 and i < len(text) - 1:
                return text
        text = text[1:-1].strip()
    return text


def is_unrestricted(where: str | None) -> bool:
    """Check whether a filter would match every feature.

    Args:
        where: Filter predicate

    Returns:
        True for blank filters and recognised tautologies
    """
    if where is None:
        return True

    text = _strip_parentheses(_collapse_whitespace(where))
    if not text:
        return True

    if text.lower() in _TRUE_LITERALS:
        return True

    numeric = _NUMERIC_EQUALITY.match(text)
    if numeric:
        return float(numeric.group(1)) == float(numeric.group(2))

    string = _STRING_EQUALITY.match(text)
    if string:
        return string.group(1) == string.group(2)

    return False


def ensure_restricted(where: str | None) -> str:
    """Return the filter unchanged, or raise if it is unrestricted.

    Raises:
        UnrestrictedFilterError: If the filter matches everything
    """
    if is_unrestricted(where):
        raise UnrestrictedFilterError(where or "")
    return where
