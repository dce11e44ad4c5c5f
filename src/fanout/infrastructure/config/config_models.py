"""Configuration data models using Pydantic."""

import re
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator, ConfigDict


MAPPER_TYPES = ["identity", "flatten", "glob", "regexp", "merge"]


class ParallelConfig(BaseModel):
    """Parallel execution configuration."""
    thread_count: int = Field(
        default=2,
        ge=1,
        le=256,
        description="Maximum number of concurrently running work units"
    )
    unit_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds before a single work unit is failed (unset = no timeout)"
    )


class TargetConfig(BaseModel):
    """A callee target run as a shell command."""
    model_config = ConfigDict(extra="forbid")

    command: str = Field(
        description="Command template; ${name} is replaced by the property 'name'"
    )
    cwd: Optional[str] = Field(
        default=None,
        description="Working directory for the command"
    )
    env: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables"
    )
    description: str = Field(default="", description="Shown by `fanout info`")

    @field_validator('env', mode='before')
    @classmethod
    def stringify_env(cls, v):
        """YAML scalars such as numbers become strings."""
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items()}
        return v


class MapperConfig(BaseModel):
    """Value mapper configuration."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: str = Field(default="identity", description=f"One of {MAPPER_TYPES}")
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = Field(default=None)

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        """Ensure mapper type is known."""
        v = v.lower()
        if v not in MAPPER_TYPES:
            raise ValueError(f"mapper type must be one of {MAPPER_TYPES}")
        return v


class FileListConfig(BaseModel):
    """Explicit list of files relative to a directory."""
    model_config = ConfigDict(extra="forbid")

    dir: str = Field(description="Base directory of the listed files")
    files: List[str] = Field(
        default_factory=list,
        description="Relative file names (list, or comma/space separated string)"
    )
    listfile: Optional[str] = Field(
        default=None,
        description="File holding one relative file name per line"
    )

    @field_validator('files', mode='before')
    @classmethod
    def split_files(cls, v):
        """Accept a comma or whitespace separated string."""
        if isinstance(v, str):
            return [name for name in re.split(r"[,\s]+", v) if name]
        return v


class FileSetConfig(BaseModel):
    """Directory scan with include/exclude patterns."""
    model_config = ConfigDict(extra="forbid")

    dir: str = Field(description="Directory to scan")
    includes: List[str] = Field(
        default_factory=lambda: ["**"],
        description="Ant-style include patterns"
    )
    excludes: List[str] = Field(
        default_factory=list,
        description="Ant-style exclude patterns"
    )
    default_excludes: bool = Field(
        default=True,
        description="Also apply file_discovery.default_exclusions"
    )


class JobConfig(BaseModel):
    """One foreach-parallel job."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    values: Optional[str] = Field(
        default=None,
        alias="list",
        description="Delimited values to iterate"
    )
    delimiter: str = Field(default=",", min_length=1)
    target: Optional[str] = Field(default=None, description="Target invoked per item")
    param: Optional[str] = Field(default=None, description="Name bound to each item's value")
    absparam: Optional[str] = Field(
        default=None,
        description="Name bound to the absolute path of each file/dir item"
    )
    thread_count: Optional[int] = Field(
        default=None,
        ge=1,
        le=256,
        description="Overrides parallel.thread_count for this job"
    )
    filelists: List[FileListConfig] = Field(default_factory=list)
    filesets: List[FileSetConfig] = Field(default_factory=list)
    mapper: Optional[Union[MapperConfig, List[MapperConfig]]] = Field(default=None)

    @field_validator('values', mode='before')
    @classmethod
    def stringify_values(cls, v):
        """A single YAML scalar such as `list: 5` is still a list string."""
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator('mapper')
    @classmethod
    def validate_single_mapper(cls, v):
        """Only one mapper may be defined."""
        if isinstance(v, list):
            if len(v) > 1:
                raise ValueError("Cannot define more than one mapper")
            return v[0] if v else None
        return v


class FileDiscoveryConfig(BaseModel):
    """File discovery configuration."""
    default_exclusions: List[str] = Field(
        default_factory=lambda: [
            "**/.git",
            "**/.git/**",
            "**/.svn",
            "**/.svn/**",
            "**/.hg",
            "**/.hg/**",
            "**/__pycache__",
            "**/__pycache__/**",
            "**/*.pyc",
            "**/.DS_Store",
            "**/*~",
        ],
        description="Patterns excluded from every fileset with default_excludes"
    )


class OutputConfig(BaseModel):
    """Output configuration."""
    color: bool = Field(
        default=True,
        description="Enable colored console output"
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose output"
    )
    save_report: bool = Field(
        default=False,
        description="Always write a JSON run report to output_directory"
    )
    output_directory: str = Field(
        default="./fanout_reports",
        description="Directory for saving reports"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path (unset = no log file)"
    )
    console: bool = Field(
        default=True,
        description="Enable console logging"
    )
    rotation: str = Field(
        default="daily",
        description="Log rotation strategy (daily, none)"
    )
    retention_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Number of days to retain logs"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v

    @field_validator('rotation')
    @classmethod
    def validate_rotation(cls, v):
        """Ensure rotation strategy is valid."""
        valid_strategies = ["daily", "none"]
        v = v.lower()
        if v not in valid_strategies:
            raise ValueError(f"rotation must be one of {valid_strategies}")
        return v


class FanoutConfig(BaseModel):
    """Complete fanout configuration."""
    model_config = ConfigDict(
        extra="forbid",  # Forbid extra fields
        validate_assignment=True  # Validate on assignment
    )

    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    file_discovery: FileDiscoveryConfig = Field(default_factory=FileDiscoveryConfig)
    properties: Dict[str, str] = Field(
        default_factory=dict,
        description="Properties inherited by every work unit"
    )
    targets: Dict[str, TargetConfig] = Field(default_factory=dict)
    jobs: Dict[str, JobConfig] = Field(default_factory=dict)

    @field_validator('properties', mode='before')
    @classmethod
    def stringify_properties(cls, v):
        """YAML scalars such as numbers become strings."""
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items()}
        return v

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        import yaml
        return yaml.dump(
            self.model_dump(by_alias=True, exclude_none=True),
            default_flow_style=False,
            sort_keys=False,
        )
