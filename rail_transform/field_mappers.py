"""
Field mappers.

A field mapper converts one field of a source instance into its output
value. Every mapper exposes the same coroutine, ``map(instance, key, is_list)``,
so a FieldMapperDelegate can treat them interchangeably.
"""

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from asgiref.sync import sync_to_async
from django.db import models

from .exceptions import TransformerNotFound
from .registry import transformer_registry

logger = logging.getLogger(__name__)


def get_field_value(instance: Any, key: str) -> Any:
    """
    Read ``key`` from a mapping or an object.

    Example:
        >>> get_field_value({"name": "Alpha"}, "name")
        'Alpha'
        >>> get_field_value(None, "name") is None
        True
    """
    if instance is None:
        return None
    if isinstance(instance, Mapping):
        return instance.get(key)
    return getattr(instance, key, None)


async def read_field_value(instance: Any, key: str) -> Any:
    """
    Read ``key`` from an instance inside a coroutine.

    Model attributes may hit the database (uncached relations, deferred
    fields), so they are read through sync_to_async.
    """
    if isinstance(instance, models.Model):
        return await sync_to_async(get_field_value)(instance, key)
    return get_field_value(instance, key)


class FieldMapper:
    """Base class for field mappers."""

    async def map(self, instance: Any, key: str, is_list: bool = False) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class PassthroughFieldMapper(FieldMapper):
    """Copy the raw field value to the output."""

    async def map(self, instance: Any, key: str, is_list: bool = False) -> Any:
        return await read_field_value(instance, key)


class CustomFieldMapper(FieldMapper):
    """
    Build the output value with a caller supplied function.

    The builder receives ``(instance, key, is_list)``. It may be a plain
    function or return an awaitable.
    """

    def __init__(self, builder: Callable[[Any, str, bool], Any]):
        if not callable(builder):
            raise TypeError(f"Field builder must be callable, got {builder!r}")
        self.builder = builder

    async def map(self, instance: Any, key: str, is_list: bool = False) -> Any:
        result = self.builder(instance, key, is_list)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        name = getattr(self.builder, "__qualname__", repr(self.builder))
        return f"CustomFieldMapper({name})"


class SubTransformFieldMapper(FieldMapper):
    """
    Transform a related object with another transformer.

    Attributes:
        transformer: A transformer, a registry key, or a zero-argument
            provider returning either. Resolved on every call.
        permission: The permission level used for the nested transform.
    """

    def __init__(self, transformer: Any, permission: Any):
        self.transformer = transformer
        self.permission = permission

    def resolve_transformer(self, source_key: Optional[str] = None) -> Any:
        """Return the transformer object this mapper delegates to."""
        reference = self.transformer
        if isinstance(reference, str):
            return transformer_registry.resolve(reference)
        if hasattr(reference, "transform"):
            return reference
        if callable(reference):
            provided = reference()
            if isinstance(provided, str):
                return transformer_registry.resolve(provided)
            if hasattr(provided, "transform"):
                return provided
        raise TransformerNotFound(reference, source_key)

    async def map(self, instance: Any, key: str, is_list: bool = False) -> Any:
        transformer = self.resolve_transformer(key)
        value = await read_field_value(instance, key)

        if is_list:
            items = await _materialize(value)
            return list(
                await asyncio.gather(
                    *(transformer.transform(self.permission, item) for item in items)
                )
            )
        if value is None:
            return None
        return await transformer.transform(self.permission, value)

    def __repr__(self) -> str:
        return f"SubTransformFieldMapper({self.transformer!r}, {self.permission!r})"


async def _materialize(value: Any) -> list[Any]:
    """Turn a collection, queryset or related manager into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    all_method = getattr(value, "all", None)
    if callable(all_method):
        # Django managers and querysets hit the database
        return await sync_to_async(list)(all_method())
    if isinstance(value, (str, bytes, Mapping)):
        return [value]
    return list(value)
