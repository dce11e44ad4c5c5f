"""Factory for value mappers."""

from typing import Optional

from ...domain.exceptions import ConfigurationError
from ...domain.services.value_mapper import IdentityMapper, ValueMapper
from ..config.config_models import MapperConfig
from .mappers import FlattenMapper, GlobMapper, MergeMapper, RegexpMapper


class MapperFactory:
    """Builds a ValueMapper from its configuration."""

    @staticmethod
    def create(config: Optional[MapperConfig]) -> ValueMapper:
        """
        Create a value mapper.

        Args:
            config: Mapper configuration; None gives the identity mapper

        Returns:
            ValueMapper wrapping the configured implementation

        Raises:
            ConfigurationError: Unknown type or missing from/to
        """
        if config is None or config.type == "identity":
            return ValueMapper(IdentityMapper())

        if config.type == "flatten":
            return ValueMapper(FlattenMapper())

        if config.type == "merge":
            if config.to is None:
                raise ConfigurationError("merge mapper requires 'to'")
            return ValueMapper(MergeMapper(config.to))

        if config.from_ is None or config.to is None:
            raise ConfigurationError(f"{config.type} mapper requires 'from' and 'to'")

        if config.type == "glob":
            return ValueMapper(GlobMapper(config.from_, config.to))
        if config.type == "regexp":
            return ValueMapper(RegexpMapper(config.from_, config.to))

        raise ConfigurationError(f"Unknown mapper type: {config.type}")
