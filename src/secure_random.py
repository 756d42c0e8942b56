"""Cryptographically strong random selection and guidance scale sampling."""

import math
import secrets
from typing import Sequence, TypeVar

from config import settings

T = TypeVar("T")

# Resolution of random_unit(); 53 bits is the full float mantissa.
_UNIT_BITS = 53


def _round_to_step(value: float, step: float) -> float:
    # Half away from zero; round() would use banker's rounding
    return math.floor(value / step + 0.5) * step


def random_item(items: Sequence[T]) -> T | str:
    """Pick one element uniformly at random.

    Args:
        items: Sequence to choose from

    Returns:
        The chosen element, or an empty string if the sequence is empty
    """
    if not items:
        return ""
    return items[secrets.randbelow(len(items))]


def random_unit() -> float:
    """Return a uniform float in [0, 1) from the system CSPRNG."""
    return secrets.randbits(_UNIT_BITS) / (1 << _UNIT_BITS)


def sample_cfg_scale(
    min_scale: float,
    max_scale: float,
    draw: float | None = None,
) -> float:
    """
    Sample a guidance scale inside [min_scale, max_scale].

    The value is mapped linearly from a uniform draw, rounded to the nearest
    0.25 and clamped back into range. A result below 1.0 is replaced by the
    fixed fallback.

    Args:
        min_scale: Lower bound of the guidance range
        max_scale: Upper bound of the guidance range
        draw: Uniform value in [0, 1) to use instead of a fresh random draw

    Returns:
        Guidance scale, always a multiple of 0.25
    """
    step = settings.limits.cfg_scale_step
    if draw is None:
        draw = random_unit()

    scale = min_scale + draw * (max_scale - min_scale)
    rounded = _round_to_step(scale, step)

    if rounded < min_scale:
        rounded = min_scale
    if rounded > max_scale:
        rounded = max_scale

    if rounded < 1.0:
        rounded = settings.limits.cfg_scale_fallback

    # A bound that is not itself on the grid is snapped back onto it
    return _round_to_step(rounded, step)
