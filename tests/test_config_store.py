"""Tests for config_store.py - configuration documents on disk."""

import json
from unittest.mock import patch

import pytest

from config_store import DEFAULT_ELEMENTS, PLACEHOLDER_API_KEY, ConfigStore
from conftest import write_config
from errors import ConfigError


@pytest.fixture
def store(path_config):
    return ConfigStore(path_config)


class TestEnsureConfigDir:
    """Tests for first-run template creation."""

    def test_creates_templates(self, store):
        with patch("config_store.click.prompt", return_value="  my-key  "):
            store.ensure_config_dir()

        assert store.elements_path.exists()
        config = json.loads(store.config_path.read_text())
        assert config["api_key"] == "my-key"
        assert config["prompt_name"] == "Hooded Hacker"
        assert config["name_as_subdir"] is True
        assert config["num_images"] == 23

    def test_without_prompt_writes_placeholder(self, store):
        store.ensure_config_dir(prompt_for_key=False)
        config = json.loads(store.config_path.read_text())
        assert config["api_key"] == PLACEHOLDER_API_KEY

    def test_keeps_existing_documents(self, store):
        write_config(store.config_path, api_key="existing")
        store.elements_path.write_text('{"face": ["mine"]}')

        with patch("config_store.click.prompt") as mock_prompt:
            store.ensure_config_dir()
            mock_prompt.assert_not_called()

        assert json.loads(store.config_path.read_text())["api_key"] == "existing"
        assert store.load_elements().face == ["mine"]

    def test_default_elements_template(self, store):
        store.paths.config_dir.mkdir(parents=True)
        store.create_default_elements()
        data = json.loads(store.elements_path.read_text())
        assert data == DEFAULT_ELEMENTS


class TestLoadConfig:
    """Tests for loading prompt.json."""

    def test_load(self, store):
        write_config(store.config_path, num_images=5)
        config = store.load_config()
        assert config.prompt_name == "Test Run"
        assert config.num_images == 5

    def test_missing_file(self, store):
        with pytest.raises(ConfigError, match="Error reading"):
            store.load_config()

    def test_invalid_json(self, store):
        store.config_path.parent.mkdir(parents=True)
        store.config_path.write_text("{not json")
        with pytest.raises(ConfigError, match="Error parsing"):
            store.load_config()

    @pytest.mark.parametrize("api_key", ["", PLACEHOLDER_API_KEY])
    def test_missing_api_key(self, store, api_key):
        write_config(store.config_path, api_key=api_key)
        with pytest.raises(ConfigError, match="No API key"):
            store.load_config()


class TestReloadConfig:
    """Tests for hot reload between iterations."""

    def test_pins_output_location(self, store, prompt_config):
        write_config(
            store.config_path,
            prompt="a dog",
            output_dir="/somewhere/else",
            name_as_subdir=True,
            enable_hair=True,
        )
        fresh = store.reload_config(prompt_config)

        assert fresh.prompt == "a dog"
        assert fresh.enable_hair
        assert fresh.output_dir == prompt_config.output_dir
        assert fresh.name_as_subdir == prompt_config.name_as_subdir

    def test_keeps_running_api_key(self, store, prompt_config):
        write_config(store.config_path, api_key="")
        assert store.reload_config(prompt_config).api_key == "test-key"

    def test_parse_failure(self, store, prompt_config):
        write_config(store.config_path)
        store.config_path.write_text('{"prompt": ')
        with pytest.raises(ConfigError):
            store.reload_config(prompt_config)


class TestLoadElements:
    """Tests for loading elements.json."""

    def test_missing(self, store):
        with pytest.raises(ConfigError, match="elements"):
            store.load_elements()

    def test_invalid(self, store):
        store.paths.config_dir.mkdir(parents=True)
        store.elements_path.write_text('{"face": "not a list"}')
        with pytest.raises(ConfigError, match="Error parsing elements"):
            store.load_elements()
