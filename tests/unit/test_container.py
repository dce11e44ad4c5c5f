"""Tests for dependency wiring."""

import pytest
import yaml
from rich.console import Console

from fanout.domain.exceptions import ConfigurationError
from fanout.infrastructure.config import ConfigLoader
from fanout.infrastructure.di import DIContainer


@pytest.fixture
def write_config(temp_dir, monkeypatch):
    """Write a config file and keep env overrides out of the way."""
    for name in ConfigLoader.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)

    def _write(data):
        path = temp_dir / "fanout.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return _write


class TestDIContainer:
    """Container creation and job translation."""

    def test_color_off_strips_console_colour(self, write_config):
        console = Console()
        path = write_config({"logging": {"console": False}, "output": {"color": False}})

        DIContainer.create(path, console=console)

        assert console.no_color

    def test_color_on_leaves_console_alone(self, write_config):
        console = Console(no_color=False)
        path = write_config({"logging": {"console": False}})

        DIContainer.create(path, console=console)

        assert not console.no_color

    def test_properties_become_parent_context(self, write_config):
        path = write_config({"logging": {"console": False}, "properties": {"env": "prod"}})

        container = DIContainer.create(path)

        assert container.context.properties == {"env": "prod"}

    def test_unknown_job(self, write_config):
        container = DIContainer.create(write_config({"logging": {"console": False}}))
        with pytest.raises(ConfigurationError, match="Unknown job 'nope'"):
            container.get_job("nope")

    def test_thread_count_precedence(self, write_config):
        path = write_config({
            "logging": {"console": False},
            "parallel": {"thread_count": 3},
            "jobs": {
                "plain": {"list": "a", "target": "t", "param": "p"},
                "tuned": {"list": "a", "target": "t", "param": "p", "thread_count": 5},
            },
        })
        container = DIContainer.create(path)

        assert container.create_command(container.get_job("plain")).thread_count == 3
        assert container.create_command(container.get_job("tuned")).thread_count == 5
        assert container.create_command(container.get_job("tuned"), thread_count=8).thread_count == 8
