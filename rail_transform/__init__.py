"""
Rail Transform - permission-gated serialization for Python objects.

Example usage:
    >>> from rail_transform import FieldPermissionLvl, Transformer
    >>>
    >>> post = Transformer("post")
    >>> post.field("title").always().passthrough()
    >>> post.field("draft_notes").restrict_to_admin().passthrough()
    >>> post.field("author").at_or_above_private().sub_transform("user")
    >>>
    >>> data = await post.transform(FieldPermissionLvl.PUBLIC, instance)
"""

__version__ = "0.1.0"

from .delegate import FieldMapperDelegate, FieldSelection, LevelAccessor
from .exceptions import (
    InvalidPermissionRanking,
    SelectionConsumed,
    TransformError,
    TransformerNotFound,
    UnknownPermissionLevel,
    UnsupportedDefaultAccessor,
)
from .field_mappers import (
    CustomFieldMapper,
    FieldMapper,
    PassthroughFieldMapper,
    SubTransformFieldMapper,
    get_field_value,
    read_field_value,
)
from .permissions import PERMISSION_RANKING, FieldPermissionLvl
from .registry import (
    TransformerRegistry,
    get_transformer,
    register_transformer,
    transformer_registry,
)
from .transformer import Transformer

__all__ = [
    "__version__",
    # Permissions
    "FieldPermissionLvl",
    "PERMISSION_RANKING",
    # Core
    "FieldMapperDelegate",
    "FieldSelection",
    "LevelAccessor",
    "Transformer",
    # Field mappers
    "FieldMapper",
    "PassthroughFieldMapper",
    "CustomFieldMapper",
    "SubTransformFieldMapper",
    "get_field_value",
    "read_field_value",
    # Registry
    "TransformerRegistry",
    "transformer_registry",
    "register_transformer",
    "get_transformer",
    # Exceptions
    "TransformError",
    "UnknownPermissionLevel",
    "UnsupportedDefaultAccessor",
    "InvalidPermissionRanking",
    "SelectionConsumed",
    "TransformerNotFound",
]
