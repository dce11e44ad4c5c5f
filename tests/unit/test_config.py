"""Tests for configuration models and loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from fanout.domain.exceptions import ConfigurationError
from fanout.infrastructure.config import ConfigLoader, FanoutConfig
from fanout.infrastructure.config.config_models import (
    FileListConfig,
    JobConfig,
    LoggingConfig,
    MapperConfig,
)


@pytest.fixture
def isolated_loader(temp_dir, monkeypatch):
    """ConfigLoader that only looks inside temp_dir and sees no env overrides."""
    for name in ConfigLoader.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_PATHS", [temp_dir / "fanout.yaml"])
    return ConfigLoader


def _write(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestModels:
    """Pydantic model validation."""

    def test_defaults(self):
        config = FanoutConfig()
        assert config.parallel.thread_count == 2
        assert config.parallel.unit_timeout is None
        assert config.logging.level == "INFO"
        assert config.jobs == {}

    def test_job_list_alias(self):
        job = JobConfig.model_validate({"list": "a,b", "target": "t", "param": "p"})
        assert job.values == "a,b"

    def test_numeric_list_is_stringified(self):
        assert JobConfig.model_validate({"list": 5}).values == "5"

    def test_more_than_one_mapper(self):
        with pytest.raises(ValidationError, match="more than one mapper"):
            JobConfig.model_validate({
                "mapper": [{"type": "flatten"}, {"type": "merge", "to": "x"}],
            })

    def test_single_mapper_list_is_unwrapped(self):
        job = JobConfig.model_validate({"mapper": [{"type": "glob", "from": "*.a", "to": "*.b"}]})
        assert isinstance(job.mapper, MapperConfig)
        assert job.mapper.from_ == "*.a"

    def test_unknown_mapper_type(self):
        with pytest.raises(ValidationError, match="mapper type"):
            MapperConfig(type="sideways")

    def test_empty_delimiter_rejected(self):
        with pytest.raises(ValidationError):
            JobConfig(delimiter="")

    def test_filelist_files_from_string(self):
        config = FileListConfig(dir=".", files="a.txt b.txt,c.txt")
        assert config.files == ["a.txt", "b.txt", "c.txt"]

    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_top_level_key(self):
        with pytest.raises(ValidationError):
            FanoutConfig.model_validate({"paralel": {}})

    def test_properties_are_stringified(self):
        config = FanoutConfig.model_validate({"properties": {"retries": 3}})
        assert config.properties == {"retries": "3"}

    def test_to_yaml_uses_aliases(self):
        config = FanoutConfig.model_validate({
            "jobs": {"j": {"list": "a", "mapper": {"type": "glob", "from": "*", "to": "*.x"}}},
        })
        dumped = yaml.safe_load(config.to_yaml())
        assert dumped["jobs"]["j"]["list"] == "a"
        assert dumped["jobs"]["j"]["mapper"]["from"] == "*"


class TestConfigLoader:
    """Loading files and environment overrides."""

    def test_defaults_without_file(self, isolated_loader):
        config = isolated_loader.load()
        assert config == FanoutConfig()

    def test_loads_default_path(self, isolated_loader, temp_dir):
        _write(temp_dir / "fanout.yaml", {"parallel": {"thread_count": 7}})
        assert isolated_loader.load().parallel.thread_count == 7

    def test_explicit_path(self, isolated_loader, temp_dir):
        path = _write(temp_dir / "custom.yaml", {
            "targets": {"hello": {"command": "echo hi"}},
            "jobs": {"greet": {"list": "a", "target": "hello", "param": "who"}},
        })
        config = isolated_loader.load(str(path))
        assert config.targets["hello"].command == "echo hi"
        assert config.jobs["greet"].param == "who"

    def test_missing_explicit_path(self, isolated_loader, temp_dir):
        with pytest.raises(ConfigurationError, match="not found"):
            isolated_loader.load(str(temp_dir / "absent.yaml"))

    def test_invalid_yaml(self, isolated_loader, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("parallel: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot read configuration"):
            isolated_loader.load(str(path))

    def test_non_mapping_yaml(self, isolated_loader, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            isolated_loader.load(str(path))

    def test_invalid_values(self, isolated_loader, temp_dir):
        path = _write(temp_dir / "bad.yaml", {"parallel": {"thread_count": 0}})
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            isolated_loader.load(str(path))

    def test_env_overrides(self, isolated_loader, temp_dir, monkeypatch):
        _write(temp_dir / "fanout.yaml", {"parallel": {"thread_count": 3}})
        monkeypatch.setenv("FANOUT_THREAD_COUNT", "9")
        monkeypatch.setenv("FANOUT_LOG_LEVEL", "warning")

        config = isolated_loader.load()

        assert config.parallel.thread_count == 9
        assert config.logging.level == "WARNING"

    def test_bad_env_override(self, isolated_loader, monkeypatch):
        monkeypatch.setenv("FANOUT_THREAD_COUNT", "many")
        with pytest.raises(ConfigurationError, match="FANOUT_THREAD_COUNT"):
            isolated_loader.load()

    def test_create_default_config(self, isolated_loader, temp_dir):
        path = isolated_loader.create_default_config(str(temp_dir / "new.yaml"))

        config = isolated_loader.load(str(path))
        assert "echo" in config.targets
        assert config.jobs["example"].values == "alpha,beta,gamma"

    def test_create_default_config_refuses_overwrite(self, isolated_loader, temp_dir):
        path = temp_dir / "exists.yaml"
        path.write_text("{}")
        with pytest.raises(ConfigurationError, match="already exists"):
            isolated_loader.create_default_config(str(path))

    def test_config_info(self, isolated_loader, temp_dir, monkeypatch):
        _write(temp_dir / "fanout.yaml", {})
        monkeypatch.setenv("FANOUT_LOG_LEVEL", "DEBUG")

        info = isolated_loader.get_config_info()

        assert info["existing_configs"] == [str(temp_dir / "fanout.yaml")]
        assert info["env_overrides"] == ["FANOUT_LOG_LEVEL=DEBUG"]
