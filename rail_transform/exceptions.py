"""
Custom exceptions for field transformation.

Configuration-time errors (unknown levels, bad rankings, unsupported
accessors) are raised synchronously by the builder API. Lookup failures for
sub-transformers surface when the transformation coroutine is awaited.
"""

from typing import Any, Optional


class TransformError(Exception):
    """Base exception for transformation errors."""

    def __init__(self, message: str, source_key: Optional[str] = None):
        self.source_key = source_key
        super().__init__(message)


class UnknownPermissionLevel(TransformError, ValueError):
    """Raised when a permission level is not part of the active ranking."""

    def __init__(
        self,
        permission: Any,
        source_key: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.permission = permission
        super().__init__(
            message or f"Permission level not found in ranking: {permission!r}",
            source_key,
        )


class UnsupportedDefaultAccessor(TransformError, AttributeError):
    """Raised when a default-ranking accessor is used on a custom ranking."""

    def __init__(self, accessor: str, source_key: Optional[str] = None):
        self.accessor = accessor
        super().__init__(
            f"Cannot use default permission ranking accessor '{accessor}' "
            "on a delegate with a custom permission ranking",
            source_key,
        )


class InvalidPermissionRanking(TransformError, ValueError):
    """Raised when a permission ranking is empty or has duplicate levels."""


class TransformerNotFound(TransformError, LookupError):
    """Raised when a sub-transformer reference cannot be resolved."""

    def __init__(self, reference: Any, source_key: Optional[str] = None):
        self.reference = reference
        super().__init__(f"Transformer not found: {reference!r}", source_key)


class SelectionConsumed(TransformError, RuntimeError):
    """Raised when a field selection is assigned more than once."""

    def __init__(self, source_key: Optional[str] = None):
        super().__init__(
            "Field selection was already used by an assignment; "
            "start a new chain with always(), when(), at_or_above() or restrict_to()",
            source_key,
        )
