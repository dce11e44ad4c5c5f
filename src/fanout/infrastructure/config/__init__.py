"""Configuration models and loading."""

from .config_loader import ConfigLoader
from .config_models import (
    FanoutConfig,
    FileListConfig,
    FileSetConfig,
    JobConfig,
    LoggingConfig,
    MapperConfig,
    ParallelConfig,
    TargetConfig,
)

__all__ = [
    "ConfigLoader",
    "FanoutConfig",
    "FileListConfig",
    "FileSetConfig",
    "JobConfig",
    "LoggingConfig",
    "MapperConfig",
    "ParallelConfig",
    "TargetConfig",
]
