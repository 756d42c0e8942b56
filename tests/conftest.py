"""Shared test fixtures for all test modules."""

import base64
import io
import json
import sys
import tempfile
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import PathConfig
from models import ElementPool, PromptConfig


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def path_config(temp_dir):
    """PathConfig rooted in the temp directory."""
    return PathConfig(home=temp_dir, override_dir=temp_dir / ".venice")


@pytest.fixture
def prompt_config(temp_dir):
    """A valid configuration with face and clothing enabled."""
    return PromptConfig(
        model="fluently-xl",
        prompt_name="Hooded Hacker",
        prompt="a modern hacker wearing a hoodie",
        negative_prompt="blurry",
        num_images=3,
        output_dir=str(temp_dir / "out"),
        api_key="test-key",
        min_config=7.5,
        max_config=15.0,
        enable_face=True,
        enable_clothing=True,
    )


@pytest.fixture
def element_pool():
    """A small element pool with one phrase per category."""
    return ElementPool(
        face=["scar"],
        type=["cyberpunk"],
        hair=["mohawk"],
        eyes=["green eyes"],
        clothing=["leather jacket"],
        style=["Cinematic"],
        poses=["arms crossed"],
        accessories=["headphones"],
        backgrounds=["server room"],
        explicit=["nsfw"],
    )


@pytest.fixture
def png_bytes():
    """Bytes that look like a PNG and pass the minimum size check."""
    return PNG_SIGNATURE + b"\x01" * 150_000


@pytest.fixture
def png_b64(png_bytes):
    """Base64 form of png_bytes, as the API returns it."""
    return base64.b64encode(png_bytes).decode()


def small_png() -> bytes:
    """A real, tiny PNG image."""
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


def write_config(path: Path, **overrides) -> Path:
    """Write a prompt.json with sensible defaults and the given overrides."""
    data = {
        "model": "fluently-xl",
        "prompt_name": "Test Run",
        "prompt": "a cat",
        "num_images": 2,
        "api_key": "test-key",
        "min_config": 7.5,
        "max_config": 15.0,
    }
    data.update(overrides)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path
