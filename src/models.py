"""Pydantic models for the configuration documents and the remote API."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


# Enhancement categories in the order they are applied to a prompt.
# Each entry is (toggle field on PromptConfig, pool field on ElementPool).
CATEGORY_ORDER = [
    ("enable_face", "face"),
    ("enable_type", "type"),
    ("enable_hair", "hair"),
    ("enable_eyes", "eyes"),
    ("enable_clothing", "clothing"),
    ("enable_background", "backgrounds"),
    ("enable_poses", "poses"),
    ("enable_accessories", "accessories"),
]

DEFAULT_DIMENSION = 1280
MIN_STEPS = 5
MAX_STEPS = 50


class PromptConfig(BaseModel):
    """The run configuration read from prompt.json."""
    model_config = ConfigDict(extra="ignore")

    model: str = "fluently-xl"
    prompt_name: str = ""
    name_as_subdir: bool = False
    prompt: str = ""
    negative_prompt: str = ""
    num_images: int = Field(1, ge=0)
    output_dir: str = ""
    api_key: str = ""
    style: bool = False
    min_config: float = 7.5
    max_config: float = 15.0
    width: int = DEFAULT_DIMENSION
    height: int = DEFAULT_DIMENSION
    steps: int = 35

    enable_face: bool = False
    enable_type: bool = False
    enable_hair: bool = False
    enable_eyes: bool = False
    enable_clothing: bool = False
    enable_background: bool = False
    enable_poses: bool = False
    enable_accessories: bool = False
    # Older documents call the explicit category "dirty"
    enable_explicit: bool = Field(False, validation_alias=AliasChoices("enable_explicit", "enable_dirty"))

    @field_validator("width", "height")
    @classmethod
    def _default_dimension(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_DIMENSION

    @field_validator("steps")
    @classmethod
    def _clamp_steps(cls, value: int) -> int:
        return min(max(value, MIN_STEPS), MAX_STEPS)

    @model_validator(mode="after")
    def _check_guidance_range(self) -> "PromptConfig":
        if self.min_config > self.max_config:
            raise ValueError(
                f"min_config ({self.min_config}) must not exceed max_config ({self.max_config})"
            )
        return self

    def toggles(self) -> dict[str, bool]:
        """Per-category enable flags keyed by category name, for display."""
        result = {pool: getattr(self, toggle) for toggle, pool in CATEGORY_ORDER}
        result["explicit"] = self.enable_explicit
        return result


class ElementPool(BaseModel):
    """Candidate phrases per enhancement category, read from elements.json."""
    model_config = ConfigDict(extra="ignore")

    face: list[str] = Field(default_factory=list)
    type: list[str] = Field(default_factory=list)
    hair: list[str] = Field(default_factory=list)
    eyes: list[str] = Field(default_factory=list)
    clothing: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    poses: list[str] = Field(default_factory=list)
    accessories: list[str] = Field(default_factory=list)
    backgrounds: list[str] = Field(default_factory=list)
    explicit: list[str] = Field(default_factory=list, validation_alias=AliasChoices("explicit", "dirty"))


class GenerationRequest(BaseModel):
    """JSON body of a generation call."""
    model: str
    prompt: str
    width: int
    height: int
    steps: int
    hide_watermark: bool = True
    return_binary: bool = False
    safe_mode: bool = False
    cfg_scale: float
    negative_prompt: str = ""
    seed: int
    style_preset: str = ""

    def to_payload(self) -> dict:
        """Serialize for the wire; an empty style preset is omitted."""
        payload = self.model_dump()
        if not payload["style_preset"]:
            del payload["style_preset"]
        return payload


class GenerateResponse(BaseModel):
    """Successful generation response: base64-encoded images in order."""
    images: list[str]
