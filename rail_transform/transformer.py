"""
Transformers.

A Transformer owns one FieldMapperDelegate per output field and turns a
whole source instance into a dictionary for a given permission level.

Example:
    >>> user_transformer = Transformer("user")
    >>> user_transformer.field("id").always().passthrough()
    >>> user_transformer.field("email").at_or_above_private().passthrough()
    >>> user_transformer.field("groups").as_list().always().sub_transform("group")
    >>>
    >>> data = await user_transformer.transform(FieldPermissionLvl.PUBLIC, user)
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

from .config_proxy import get_setting
from .delegate import FieldMapperDelegate
from .permissions import normalize_ranking
from .registry import transformer_registry

logger = logging.getLogger(__name__)


class Transformer:
    """Permission-aware serializer built from per-field delegates."""

    def __init__(
        self,
        name: Optional[str] = None,
        permission_ranking: Optional[Iterable[Any]] = None,
        register: bool = True,
    ):
        """
        Args:
            name: Registry key; named transformers can be referenced by
                sub-transforms.
            permission_ranking: Custom ranking shared by every field.
            register: Register the transformer under ``name``.
        """
        self.name = name
        self.permission_ranking = (
            None if permission_ranking is None else normalize_ranking(permission_ranking)
        )
        self._fields: dict[str, FieldMapperDelegate] = {}

        if name and register:
            transformer_registry.register(name, self)

    @property
    def fields(self) -> dict[str, FieldMapperDelegate]:
        return dict(self._fields)

    def field(self, output_key: str, source_key: Optional[str] = None) -> FieldMapperDelegate:
        """
        Return the delegate for ``output_key``, creating it on first use.

        Args:
            output_key: Key of the field in the transformed output.
            source_key: Key on the source object, defaults to ``output_key``.
        """
        delegate = self._fields.get(output_key)
        if delegate is None:
            delegate = FieldMapperDelegate(source_key or output_key, self.permission_ranking)
            self._fields[output_key] = delegate
        elif source_key and source_key != delegate.source_key:
            raise ValueError(
                f"Field '{output_key}' already maps source key '{delegate.source_key}'"
            )
        return delegate

    async def transform(self, permission: Any, instance: Any) -> Optional[dict[str, Any]]:
        """
        Transform ``instance`` at ``permission``.

        Returns None for a None instance. Denied fields are omitted unless
        ``transform_settings.omit_denied_fields`` is disabled.
        """
        if instance is None:
            return None

        omit_denied = get_setting("transform_settings.omit_denied_fields", True)
        keys = [
            key
            for key, delegate in self._fields.items()
            if not omit_denied or delegate.permits(permission)
        ]
        values = await asyncio.gather(
            *(self._fields[key].transform(permission, instance) for key in keys)
        )
        return dict(zip(keys, values))

    async def transform_many(self, permission: Any, instances: Iterable[Any]) -> list[Any]:
        """Transform several instances concurrently, keeping their order."""
        return list(
            await asyncio.gather(
                *(self.transform(permission, instance) for instance in instances)
            )
        )

    def __repr__(self) -> str:
        return f"Transformer({self.name!r}, fields={list(self._fields)})"
