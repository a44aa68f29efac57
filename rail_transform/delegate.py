"""
Field mapper delegates.

A FieldMapperDelegate holds, for a single field, the field mapper used at
each permission level of a ranking. It is configured through short builder
chains: a selection (``always``, ``when``, ``at_or_above``, ``restrict_to``)
followed by one assignment (``passthrough``, ``build_with``, ``sub_transform``).

Example:
    >>> delegate = FieldMapperDelegate("email")
    >>> delegate.restrict_to_private().passthrough()
    >>> delegate.at_or_above(FieldPermissionLvl.PRIVATE).build_with(mask_email)

Delegates are usually created through ``Transformer.field``.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Optional

from .config_proxy import get_setting
from .exceptions import (
    SelectionConsumed,
    UnknownPermissionLevel,
    UnsupportedDefaultAccessor,
)
from .field_mappers import (
    CustomFieldMapper,
    FieldMapper,
    PassthroughFieldMapper,
    SubTransformFieldMapper,
)
from .permissions import (
    PERMISSION_RANKING,
    accessor_suffix,
    normalize_ranking,
    ranking_index,
)

logger = logging.getLogger(__name__)

AT_OR_ABOVE = "at_or_above"
WHEN = "when"
RESTRICT_TO = "restrict_to"
ACCESSOR_KINDS = (AT_OR_ABOVE, WHEN, RESTRICT_TO)


def _accessor_table(ranking: Iterable[Any]) -> dict[str, tuple[str, Any]]:
    """Map accessor names such as ``when_private`` to (kind, level)."""
    table = {}
    for level in ranking:
        suffix = accessor_suffix(level)
        for kind in ACCESSOR_KINDS:
            table[f"{kind}_{suffix}"] = (kind, level)
    return table


# Accessors for the canonical ranking, shared by every delegate
DEFAULT_ACCESSORS = _accessor_table(PERMISSION_RANKING)


@dataclass(frozen=True)
class FieldSelection:
    """
    The permission levels targeted by the next assignment.

    A selection is created by one of the delegate's selection methods and
    consumed by exactly one assignment, which returns the delegate. Reusing
    a consumed selection raises SelectionConsumed.

    Attributes:
        delegate: The delegate the assignment is applied to.
        level: The level whose slot receives the assigned mapper.
        broadcast: Copy the assigned mapper to every level.
        cutoff_index: Deny every level ranked below this index.
        sole_index: Deny every level except this index.
    """

    delegate: "FieldMapperDelegate" = field(repr=False, compare=False)
    level: Any
    broadcast: bool = False
    cutoff_index: Optional[int] = None
    sole_index: Optional[int] = None
    _consumed: bool = field(default=False, init=False, repr=False, compare=False)

    def _consume(self) -> None:
        if self._consumed:
            raise SelectionConsumed(self.delegate.source_key)
        object.__setattr__(self, "_consumed", True)

    def passthrough(self) -> "FieldMapperDelegate":
        """Assign a PassthroughFieldMapper to the selected levels."""
        return self.delegate._assign(self, PassthroughFieldMapper())

    def build_with(
        self, builder: Callable[[Any, str, bool], Any]
    ) -> "FieldMapperDelegate":
        """
        Assign a CustomFieldMapper to the selected levels.

        Args:
            builder: Called as ``builder(instance, key, is_list)``.
        """
        return self.delegate._assign(self, CustomFieldMapper(builder))

    def sub_transform(
        self, transformer: Any, permission: Any = None
    ) -> "FieldMapperDelegate":
        """
        Assign SubTransformFieldMappers for a related object.

        Args:
            transformer: A transformer, a registry key, or a zero-argument
                provider returning either.
            permission: When given, every level transforms the child at this
                fixed level. By default each level transforms the child at
                its own level.
        """
        return self.delegate._assign_sub_transform(self, transformer, permission)


class LevelAccessor:
    """Selection shortcuts bound to one permission level."""

    def __init__(self, delegate: "FieldMapperDelegate", level: Any):
        self._delegate = delegate
        self.level = level

    def when(self) -> FieldSelection:
        return self._delegate.when(self.level)

    def at_or_above(self) -> FieldSelection:
        return self._delegate.at_or_above(self.level)

    def restrict_to(self) -> FieldSelection:
        return self._delegate.restrict_to(self.level)

    def __repr__(self) -> str:
        return f"LevelAccessor({self.level!r})"


class FieldMapperDelegate:
    """
    Per-level field mapper table for one field.

    Every ranked level starts out denied (``None``); levels are only granted
    through explicit assignments.

    Per-level accessors are generated from the ranking: with the ranking
    ``["low", "high"]`` the delegate answers ``when_low()``,
    ``restrict_to_high()``, ``at_or_above_low()`` and so on. The canonical
    accessors (``when_private``, ...) raise UnsupportedDefaultAccessor on a
    delegate whose custom ranking does not define that level.
    """

    def __init__(
        self, source_key: str, permission_ranking: Optional[Iterable[Any]] = None
    ):
        """
        Args:
            source_key: The key of the field on the source object.
            permission_ranking: Custom ranking, lowest trust first. Defaults
                to PERMISSION_RANKING.
        """
        self.source_key = source_key
        self.is_default_ranking = permission_ranking is None
        self.permission_ranking = normalize_ranking(permission_ranking)
        self.is_list = False

        self._index = ranking_index(self.permission_ranking)
        self._mappers: dict[Any, Optional[FieldMapper]] = dict.fromkeys(
            self.permission_ranking
        )
        self._accessor_names = _accessor_table(self.permission_ranking)
        self.accessors = {
            level: LevelAccessor(self, level) for level in self.permission_ranking
        }

    # Selection

    def always(self) -> FieldSelection:
        """Select every permission level."""
        # Any ranked level works, the broadcast overwrites all of them
        return FieldSelection(self, self.permission_ranking[0], broadcast=True)

    def when(self, permission: Any) -> FieldSelection:
        """Select a single level without touching the others."""
        return FieldSelection(self, permission)

    def at_or_above(self, permission: Any) -> FieldSelection:
        """Select ``permission`` and every level above it; deny the rest."""
        return FieldSelection(
            self, permission, cutoff_index=self.index_of(permission)
        )

    def restrict_to(self, permission: Any) -> FieldSelection:
        """Select ``permission`` only; deny every other level."""
        return FieldSelection(self, permission, sole_index=self.index_of(permission))

    def as_list(self) -> "FieldMapperDelegate":
        """Mark the field as a collection (1:M or M:M relations)."""
        self.is_list = True
        return self

    def index_of(self, permission: Any) -> int:
        """
        Return the ranking position of ``permission``.

        Raises:
            UnknownPermissionLevel: if the level is not ranked.
        """
        try:
            return self._index[permission]
        except (KeyError, TypeError):
            raise UnknownPermissionLevel(permission, self.source_key) from None

    # Assignment

    def _assign(self, selection: FieldSelection, mapper: FieldMapper) -> "FieldMapperDelegate":
        selection._consume()
        if selection.level in self._index:
            self._mappers[selection.level] = mapper
        else:
            logger.warning(
                "Field '%s': dropping %r for unranked permission level %r",
                self.source_key,
                mapper,
                selection.level,
            )
        self._narrow(selection)
        return self

    def _assign_sub_transform(
        self, selection: FieldSelection, transformer: Any, permission: Any
    ) -> "FieldMapperDelegate":
        selection._consume()
        if permission is not None:
            if permission not in self._index:
                raise UnknownPermissionLevel(
                    permission,
                    self.source_key,
                    message=f"Invalid sub-transform permission level: {permission!r}",
                )
            # One mapper shared by every parent level
            mapper = SubTransformFieldMapper(transformer, permission)
            for level in self.permission_ranking:
                self._mappers[level] = mapper
        else:
            # Each parent level transforms the child at its own level
            for level in self.permission_ranking:
                self._mappers[level] = SubTransformFieldMapper(transformer, level)

        # Every level was just set, nothing left to broadcast
        self._narrow(replace(selection, broadcast=False))
        return self

    def _narrow(self, selection: FieldSelection) -> None:
        """Apply broadcast, cutoff and sole restrictions, in that order."""
        assigned = self._mappers.get(selection.level)

        if selection.broadcast:
            for level in self.permission_ranking:
                self._mappers[level] = assigned

        if selection.cutoff_index is not None:
            for index, level in enumerate(self.permission_ranking):
                self._mappers[level] = None if index < selection.cutoff_index else assigned

        if selection.sole_index is not None:
            for index, level in enumerate(self.permission_ranking):
                self._mappers[level] = assigned if index == selection.sole_index else None

        logger.debug("Field '%s' mappers: %s", self.source_key, self._mappers)

    # Resolution

    def mapper_for(self, permission: Any) -> Optional[FieldMapper]:
        """Return the mapper used at ``permission``, or None when denied."""
        try:
            return self._mappers.get(permission)
        except TypeError:
            return None

    def permits(self, permission: Any) -> bool:
        return self.mapper_for(permission) is not None

    async def transform(self, permission: Any, instance: Any) -> Any:
        """
        Map this field of ``instance`` at the given permission level.

        Returns None when the level is denied. Errors raised by the field
        mapper propagate unchanged.
        """
        mapper = self.mapper_for(permission)
        if mapper is None:
            if get_setting("transform_settings.log_denials", False):
                logger.debug(
                    "Field '%s' denied at permission level %r",
                    self.source_key,
                    permission,
                )
            return None
        return await mapper.map(instance, self.source_key, self.is_list)

    # Generated accessors

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        accessor_names = self.__dict__.get("_accessor_names")
        if accessor_names is None:
            raise AttributeError(name)

        entry = accessor_names.get(name)
        if entry is None and name in DEFAULT_ACCESSORS:
            if not self.is_default_ranking:
                raise UnsupportedDefaultAccessor(name, self.source_key)
            entry = DEFAULT_ACCESSORS[name]
        if entry is None:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )

        kind, level = entry
        return getattr(self.accessors[level], kind)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._accessor_names))

    def __repr__(self) -> str:
        return f"FieldMapperDelegate({self.source_key!r})"
