"""Value mapping applied to raw items before binding."""

from abc import ABC, abstractmethod
from typing import List, Optional


class MapperImplementation(ABC):
    """
    A raw value transformation.

    Implementations return every candidate they produce, or None when the
    value does not map. They must be pure.
    """

    @abstractmethod
    def map(self, value: str) -> Optional[List[str]]:
        pass


class IdentityMapper(MapperImplementation):
    """Maps every value to itself."""

    def map(self, value: str) -> Optional[List[str]]:
        return [value]


class ValueMapper:
    """
    Applies a mapper implementation to raw item values.

    Only the first candidate is used. None (or no candidates) means the
    item is skipped.
    """

    def __init__(self, implementation: Optional[MapperImplementation] = None):
        self.implementation = implementation or IdentityMapper()

    @property
    def is_identity(self) -> bool:
        return isinstance(self.implementation, IdentityMapper)

    def apply(self, raw: str) -> Optional[str]:
        """
        Map a raw value.

        Args:
            raw: Raw item value

        Returns:
            Mapped value, or None to skip the item
        """
        candidates = self.implementation.map(raw)
        if not candidates:
            return None
        return candidates[0]
