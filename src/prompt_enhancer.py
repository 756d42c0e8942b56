"""Randomized prompt enhancement from the element pool."""

from dataclasses import dataclass
from typing import Callable, Sequence

from models import CATEGORY_ORDER, ElementPool, PromptConfig
from secure_random import random_item

# Leads the chosen phrases whenever explicit content is enabled
EXPLICIT_MARKER = "uncensored"


@dataclass(frozen=True)
class EnhancedPrompt:
    """Result of enhancing a base prompt."""

    prompt: str
    elements: str = ""
    explicit_elements: str = ""


def enhance_prompt(
    base_prompt: str,
    config: PromptConfig,
    pool: ElementPool,
    choose: Callable[[Sequence[str]], str] = random_item,
) -> EnhancedPrompt:
    """
    Combine a base prompt with one random phrase from each enabled category.

    Categories are visited in CATEGORY_ORDER so the result only depends on
    the random draws. An enabled category with an empty pool contributes
    nothing.

    Args:
        base_prompt: The user's base prompt (may be empty)
        config: Configuration holding the category toggles
        pool: Element pool to draw phrases from
        choose: Selection function, defaults to the CSPRNG-backed random_item

    Returns:
        EnhancedPrompt with the full prompt, the comma-joined chosen phrases
        and the comma-joined explicit phrases (empty unless enabled)
    """
    chosen = []
    for toggle, category in CATEGORY_ORDER:
        items = getattr(pool, category)
        if getattr(config, toggle) and items:
            item = choose(items).strip()
            if item:
                chosen.append(item)

    if config.enable_explicit:
        chosen.insert(0, EXPLICIT_MARKER)

    full_prompt = base_prompt
    if chosen:
        joined = ", ".join(chosen)
        full_prompt = f"{base_prompt}, {joined}" if base_prompt else joined

    explicit = ""
    if config.enable_explicit:
        explicit = ", ".join([EXPLICIT_MARKER, *pool.explicit])

    return EnhancedPrompt(
        prompt=full_prompt,
        elements=", ".join(chosen),
        explicit_elements=explicit,
    )


def enhancement_text(full_prompt: str, base_prompt: str) -> str:
    """Return the part of full_prompt added beyond base_prompt."""
    if base_prompt and full_prompt.startswith(base_prompt):
        full_prompt = full_prompt[len(base_prompt):]
    return full_prompt.removeprefix(", ")
