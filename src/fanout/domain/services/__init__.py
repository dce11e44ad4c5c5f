"""Domain service interfaces."""

from .invoker import Invokable
from .value_mapper import ValueMapper, MapperImplementation, IdentityMapper

__all__ = ["Invokable", "ValueMapper", "MapperImplementation", "IdentityMapper"]
