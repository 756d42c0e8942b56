"""Tests for Pydantic models and input validation."""

import pytest
from pydantic import ValidationError

from models import CATEGORY_ORDER, ElementPool, GenerateResponse, GenerationRequest, PromptConfig


class TestPromptConfig:
    """Tests for the prompt.json model."""

    def test_defaults(self):
        """Test PromptConfig defaults."""
        config = PromptConfig()
        assert config.model == "fluently-xl"
        assert config.num_images == 1
        assert config.width == 1280
        assert config.height == 1280
        assert config.steps == 35
        assert config.min_config == 7.5
        assert config.max_config == 15.0
        assert not config.enable_explicit

    def test_non_positive_dimensions_default(self):
        config = PromptConfig(width=0, height=-5)
        assert config.width == 1280
        assert config.height == 1280

    @pytest.mark.parametrize("steps,expected", [(1, 5), (5, 5), (30, 30), (50, 50), (99, 50)])
    def test_steps_clamped(self, steps, expected):
        assert PromptConfig(steps=steps).steps == expected

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            PromptConfig(num_images=-1)

    def test_inverted_guidance_range_rejected(self):
        with pytest.raises(ValidationError, match="min_config"):
            PromptConfig(min_config=12.0, max_config=8.0)

    def test_unknown_fields_ignored(self):
        config = PromptConfig.model_validate({"prompt": "x", "legacy_field": 1})
        assert config.prompt == "x"

    def test_parses_document(self):
        """Test parsing a prompt.json document."""
        config = PromptConfig.model_validate_json(
            '{"prompt_name": "Run", "prompt": "a cat", "num_images": 4, '
            '"enable_face": true, "style": true}'
        )
        assert config.prompt_name == "Run"
        assert config.num_images == 4
        assert config.enable_face
        assert config.style

    def test_legacy_explicit_key(self):
        """Documents written by earlier versions name the explicit toggle enable_dirty."""
        config = PromptConfig.model_validate_json('{"prompt": "x", "enable_dirty": true}')
        assert config.enable_explicit
        assert config.toggles()["explicit"] is True

    def test_explicit_key_by_field_name(self):
        assert PromptConfig(enable_explicit=True).enable_explicit
        assert "enable_explicit" in PromptConfig().model_dump()

    def test_toggles(self):
        config = PromptConfig(enable_face=True, enable_background=True, enable_explicit=True)
        toggles = config.toggles()
        assert toggles["face"] is True
        assert toggles["backgrounds"] is True
        assert toggles["explicit"] is True
        assert toggles["hair"] is False
        assert len(toggles) == len(CATEGORY_ORDER) + 1


class TestElementPool:
    """Tests for the elements.json model."""

    def test_missing_categories_empty(self):
        pool = ElementPool.model_validate_json('{"face": ["scar"]}')
        assert pool.face == ["scar"]
        assert pool.backgrounds == []
        assert pool.explicit == []

    def test_legacy_explicit_pool(self):
        pool = ElementPool.model_validate_json('{"face": ["scar"], "dirty": ["a", "b"]}')
        assert pool.explicit == ["a", "b"]
        assert pool.model_dump()["explicit"] == ["a", "b"]

    def test_every_category_has_a_pool(self):
        fields = ElementPool.model_fields
        for _, pool_name in CATEGORY_ORDER:
            assert pool_name in fields


class TestGenerationRequest:
    """Tests for the wire request body."""

    def _request(self, **overrides):
        data = dict(
            model="fluently-xl",
            prompt="a cat",
            width=1280,
            height=1280,
            steps=35,
            cfg_scale=9.25,
            negative_prompt="blurry",
            seed=1234,
        )
        data.update(overrides)
        return GenerationRequest(**data)

    def test_payload_fields(self):
        payload = self._request(style_preset="Anime").to_payload()
        assert payload["hide_watermark"] is True
        assert payload["return_binary"] is False
        assert payload["safe_mode"] is False
        assert payload["cfg_scale"] == 9.25
        assert payload["seed"] == 1234
        assert payload["style_preset"] == "Anime"

    def test_empty_style_preset_omitted(self):
        payload = self._request().to_payload()
        assert "style_preset" not in payload


class TestGenerateResponse:
    """Tests for the response body model."""

    def test_parse(self):
        response = GenerateResponse.model_validate_json('{"images": ["aGVsbG8="], "id": "x"}')
        assert response.images == ["aGVsbG8="]

    def test_missing_images_rejected(self):
        with pytest.raises(ValidationError):
            GenerateResponse.model_validate_json('{"id": "x"}')
