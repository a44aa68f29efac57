"""
Permission levels and rankings.

A ranking is an ordered sequence of permission levels, lowest trust first.
Levels are opaque tokens; the package only relies on their order.
"""

import re
from enum import Enum
from typing import Any, Iterable, Optional

from .exceptions import InvalidPermissionRanking


class FieldPermissionLvl(str, Enum):
    """
    Canonical permission levels.

    - PUBLIC: anonymous callers
    - PRIVATE: the owner of the record or a trusted caller
    - ADMIN: administrative access
    """

    PUBLIC = "public"
    PRIVATE = "private"
    ADMIN = "admin"


# Default ranking, lowest trust first
PERMISSION_RANKING: tuple[FieldPermissionLvl, ...] = (
    FieldPermissionLvl.PUBLIC,
    FieldPermissionLvl.PRIVATE,
    FieldPermissionLvl.ADMIN,
)

_NON_IDENTIFIER = re.compile(r"\W+")


def level_name(level: Any) -> str:
    """Return the string form of a permission level."""
    if isinstance(level, Enum):
        return str(level.value)
    return str(level)


def accessor_suffix(level: Any) -> str:
    """
    Return the suffix used for generated accessor names.

    Example:
        >>> accessor_suffix(FieldPermissionLvl.PRIVATE)
        'private'
        >>> accessor_suffix("Super User")
        'super_user'
    """
    return _NON_IDENTIFIER.sub("_", level_name(level)).strip("_").lower()


def normalize_ranking(ranking: Optional[Iterable[Any]]) -> tuple[Any, ...]:
    """
    Validate a permission ranking and return it as a tuple.

    Raises:
        InvalidPermissionRanking: if the ranking is empty, has duplicates, or
            two levels share an accessor name.
    """
    if ranking is None:
        return PERMISSION_RANKING
    levels = tuple(ranking)
    if not levels:
        raise InvalidPermissionRanking("Permission ranking must not be empty")

    seen: set[Any] = set()
    duplicates = []
    for level in levels:
        if level in seen:
            duplicates.append(level)
        seen.add(level)
    if duplicates:
        raise InvalidPermissionRanking(
            f"Permission ranking has duplicate levels: {duplicates!r}"
        )

    # Generated accessor names must stay distinct
    suffixes: dict[str, Any] = {}
    for level in levels:
        suffix = accessor_suffix(level)
        if not suffix or suffix in suffixes:
            raise InvalidPermissionRanking(
                f"Permission level {level!r} has no unique accessor name "
                f"(conflicts with {suffixes.get(suffix)!r})"
            )
        suffixes[suffix] = level
    return levels


def ranking_index(ranking: tuple[Any, ...]) -> dict[Any, int]:
    """Map each level of a ranking to its position."""
    return {level: index for index, level in enumerate(ranking)}
