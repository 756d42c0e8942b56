"""Collision-free output naming and output directory resolution."""

import re
import time
from pathlib import Path

from config import settings

# Name used for files when each run gets its own subdirectory
SUBDIR_IMAGE_NAME = "image"


def sanitize_name(name: str, max_length: int | None = None) -> str:
    """
    Make a run name safe for use in a filename.

    ASCII letters and digits are kept; every other character becomes an
    underscore. Runs of underscores collapse to one, leading and trailing
    underscores are trimmed, and the result is truncated.

    Args:
        name: Raw run name
        max_length: Maximum length (defaults to the configured filename limit)

    Returns:
        Sanitized name (may be empty)
    """
    if max_length is None:
        max_length = settings.limits.max_filename_length
    cleaned = re.sub(r"[^A-Za-z0-9]", "_", name)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_")[:max_length]


def format_filename(name: str, ordinal: int, counter: int, seed: int, cfg_scale: float) -> str:
    """Compose `<name>-<ordinal>.<counter>_seed<seed>_scale<cfg>.png`."""
    return f"{name}-{ordinal}.{counter}_seed{seed}_scale{cfg_scale:.2f}.png"


def resolve_image_path(
    output_dir: Path,
    run_name: str,
    using_subdir: bool,
    index: int,
    seed: int,
    cfg_scale: float,
) -> Path:
    """
    Find a free path for the image at a 0-based iteration index.

    The sub-counter starts at 0 and is incremented until the composed path
    does not exist, so an existing file is never overwritten.

    Args:
        output_dir: Resolved output directory for the run
        run_name: Configured run name
        using_subdir: Whether images live in a per-run subdirectory
        index: 0-based iteration index (the filename ordinal is index + 1)
        seed: Seed used for the generation
        cfg_scale: Guidance scale used for the generation

    Returns:
        Path inside output_dir that does not exist yet
    """
    name = SUBDIR_IMAGE_NAME if using_subdir else sanitize_name(run_name)
    ordinal = index + 1
    counter = 0
    while True:
        path = output_dir / format_filename(name, ordinal, counter, seed, cfg_scale)
        if not path.exists():
            return path
        counter += 1


def resolve_output_dir(
    base_dir: Path,
    run_name: str,
    name_as_subdir: bool,
    now: float | None = None,
) -> tuple[Path, bool]:
    """
    Decide the output directory for a run. Called once at startup.

    With name_as_subdir and a run name, images go to `<base>/<run name>`;
    if that directory already exists, `<base>/<run name>_<unix time>` is
    used instead so two runs never share a directory.

    Args:
        base_dir: Base output directory
        run_name: Configured run name
        name_as_subdir: Whether to place images in a per-run subdirectory
        now: Unix timestamp used for disambiguation (defaults to time.time())

    Returns:
        Tuple of (output directory, whether a per-run subdirectory is used).
        The directory is not created here.
    """
    if not (name_as_subdir and run_name):
        return base_dir, False

    candidate = base_dir / run_name
    if candidate.is_dir():
        stamp = int(time.time() if now is None else now)
        candidate = base_dir / f"{run_name}_{stamp}"
    return candidate, True
