"""Loading, first-run creation and hot reload of the configuration documents."""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError as PydanticValidationError

from config import PathConfig, paths as default_paths
from errors import ConfigError
from models import ElementPool, PromptConfig

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "YOUR_API_KEY"

DEFAULT_ELEMENTS = {
    "style": [
        "3D Model", "Analog Film", "Anime", "Cinematic", "Fantasy Art",
        "Line Art", "Neon Punk", "Origami", "Photographic", "Pixel Art",
        "Watercolor", "Steampunk", "Film Noir", "Minimalist", "Gothic",
    ],
    "face": [
        "natural freckles", "rosy cheeks", "eyebrow scar", "star tattoo",
        "geometric patterns", "glowing symbols", "beauty mark", "face piercings",
    ],
    "type": [
        "cyberpunk", "street artist", "astronaut", "librarian",
        "mountain climber", "jazz musician", "chef", "detective",
    ],
    "hair": [
        "short silver hair", "long braided hair", "messy undercut", "neon blue mohawk",
        "curly auburn hair", "shaved head",
    ],
    "eyes": [
        "green eyes", "heterochromia", "glowing amber eyes", "grey eyes",
    ],
    "clothing": [
        "leather jacket", "oversized hoodie", "trench coat", "tactical vest",
        "vintage denim", "kimono",
    ],
    "poses": [
        "looking over shoulder", "arms crossed", "sitting on a ledge", "mid-stride",
        "leaning against a wall",
    ],
    "accessories": [
        "mirrored sunglasses", "headphones", "silver rings", "pocket watch",
    ],
    "backgrounds": [
        "rainy neon alley", "server room", "rooftop at dusk", "abandoned subway",
        "foggy forest",
    ],
    "explicit": [],
}


class ConfigStore:
    """Reads and creates prompt.json and elements.json."""

    def __init__(self, path_config: PathConfig | None = None):
        """Initialize the store.

        Args:
            path_config: Locations of the documents (defaults to the global paths)
        """
        self.paths = path_config or default_paths

    @property
    def config_path(self) -> Path:
        return self.paths.config_path

    @property
    def elements_path(self) -> Path:
        return self.paths.elements_path

    def ensure_config_dir(self, prompt_for_key: bool = True) -> None:
        """
        Create the configuration directory and any missing template documents.

        Args:
            prompt_for_key: Ask for the API key interactively when prompt.json
                has to be created (otherwise the placeholder key is written)

        Raises:
            ConfigError: If the directory or a template cannot be written
        """
        try:
            self.paths.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Error creating {self.paths.config_dir}: {e}") from e

        if not self.elements_path.exists():
            self.create_default_elements()

        if not self.config_path.exists():
            api_key = PLACEHOLDER_API_KEY
            if prompt_for_key:
                click.echo("This looks like a first-time run - an API key is required to use this utility.")
                click.echo("Please provide your API Key (or use [ctrl]+[C] to cancel and come back later)")
                api_key = click.prompt("API Key", hide_input=True).strip()
            self.create_default_config(api_key)

    def create_default_elements(self) -> Path:
        """Write the template element pool, falling back to an empty one."""
        try:
            self.elements_path.write_text(json.dumps(DEFAULT_ELEMENTS, indent=4))
        except OSError as e:
            logger.warning(f"Could not write full elements template: {e}; trying an empty template")
            empty = ElementPool().model_dump()
            try:
                self.elements_path.write_text(json.dumps(empty, indent=4))
            except OSError as e2:
                raise ConfigError(f"Error writing template elements: {e2}") from e2
        logger.info(f"Created template elements at {self.elements_path}")
        return self.elements_path

    def create_default_config(self, api_key: str) -> Path:
        """Write the template prompt.json with the given API key."""
        template = PromptConfig(
            model="fluently-xl",
            api_key=api_key or PLACEHOLDER_API_KEY,
            negative_prompt="blur, distort, distorted, blurry, censored, censor, pixelated",
            num_images=23,
            min_config=7.5,
            max_config=15.0,
            width=1280,
            height=1280,
            steps=35,
            style=True,
            enable_face=True,
            enable_type=True,
            enable_clothing=True,
            enable_poses=True,
            name_as_subdir=True,
            prompt_name="Hooded Hacker",
            prompt="a modern hacker wearing a hoodie",
            output_dir=str(self.paths.default_output_dir),
        )
        try:
            self.config_path.write_text(template.model_dump_json(indent=4))
        except OSError as e:
            raise ConfigError(f"Error writing template config: {e}") from e
        logger.info(f"Created template config at {self.config_path}")
        return self.config_path

    def _read_config(self) -> PromptConfig:
        try:
            data = self.config_path.read_text()
        except OSError as e:
            raise ConfigError(f"Error reading {self.config_path}: {e}") from e
        try:
            return PromptConfig.model_validate_json(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Error parsing {self.config_path.name}: {e}") from e

    def load_config(self) -> PromptConfig:
        """
        Load and validate prompt.json for a new run.

        Returns:
            The parsed configuration

        Raises:
            ConfigError: If the document is missing, invalid, or has no API key
        """
        config = self._read_config()
        if not config.api_key or config.api_key == PLACEHOLDER_API_KEY:
            raise ConfigError(f"No API key found in config file {self.config_path}")
        return config

    def reload_config(self, current: PromptConfig) -> PromptConfig:
        """
        Re-read prompt.json between iterations.

        The output directory and subdirectory decision of the running
        configuration are kept; everything else comes from the document.
        The API key falls back to the running one if the document lost it.

        Args:
            current: Configuration in use by the run

        Returns:
            The reloaded configuration

        Raises:
            ConfigError: If the document cannot be read or parsed
        """
        fresh = self._read_config()
        updates = {
            "output_dir": current.output_dir,
            "name_as_subdir": current.name_as_subdir,
        }
        if not fresh.api_key or fresh.api_key == PLACEHOLDER_API_KEY:
            updates["api_key"] = current.api_key
        return fresh.model_copy(update=updates)

    def load_elements(self) -> ElementPool:
        """
        Load elements.json.

        Raises:
            ConfigError: If the document cannot be read or parsed
        """
        try:
            data = self.elements_path.read_text()
        except OSError as e:
            raise ConfigError(f"Error reading elements file: {e}") from e
        try:
            return ElementPool.model_validate_json(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Error parsing elements file: {e}") from e
