"""
Finder name parsing for dynamic repository methods.

Maps method names such as ``get_by_email``, ``get_one_by_id``,
``getByEmailAddress`` or ``getOneById`` to the column they filter on and
whether they return every match or only the first one.
"""

import re
from typing import Any, NamedTuple, Optional

MANY = "many"
ONE = "one"

FINDER_PATTERNS = (
    (re.compile(r"^get_one_by_(?P<field>[a-z0-9_]+)$"), ONE),
    (re.compile(r"^get_by_(?P<field>[a-z0-9_]+)$"), MANY),
    (re.compile(r"^getOneBy(?P<field>[A-Z]\w*)$"), ONE),
    (re.compile(r"^getBy(?P<field>[A-Z]\w*)$"), MANY),
)

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class Finder(NamedTuple):
    kind: str
    column: str


def snake_case(name: str) -> str:
    """
    Convert a CamelCase or mixedCase name to snake_case.

    Examples:
        >>> snake_case("EmailAddress")
        'email_address'
        >>> snake_case("UserID")
        'user_id'
    """
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    return name.lower()


def parse_finder_name(name: str) -> Optional[Finder]:
    """
    Parse a dynamic finder method name.

    Args:
        name: Attribute name looked up on a repository

    Returns:
        Optional[Finder]: The finder kind and snake_case column, or None if
        the name is not a finder
    """
    for pattern, kind in FINDER_PATTERNS:
        match = pattern.match(name)
        if match:
            return Finder(kind, snake_case(match.group("field")))
    return None


def finder_names(column: str):
    """Method names a column is reachable through."""
    return (f"get_by_{column}", f"get_one_by_{column}")


def is_collection(value: Any) -> bool:
    """Whether a finder value should become an IN predicate."""
    return isinstance(value, (list, tuple, set, frozenset))
