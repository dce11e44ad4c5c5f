"""Value mapper implementations."""

from .mappers import FlattenMapper, GlobMapper, MergeMapper, RegexpMapper
from .mapper_factory import MapperFactory

__all__ = [
    "FlattenMapper",
    "GlobMapper",
    "MergeMapper",
    "RegexpMapper",
    "MapperFactory",
]
