"""Presentation of progress events in the terminal."""

import click

from generation_engine import ProgressEvent

BAR_CELLS = 35
DONE_CELL = "✅"
PENDING_CELL = "⬛"
PROMPT_WIDTH = 65
PROMPT_LINES = 5
INDENT = " " * 10

# Display labels for the category toggles, in display order
TOGGLE_LABELS = [
    ("face", "Face"),
    ("type", "Type"),
    ("hair", "Hair"),
    ("eyes", "Eyes"),
    ("clothing", "Clothing"),
    ("backgrounds", "Backgrnd"),
    ("poses", "Poses"),
    ("accessories", "Accesry"),
    ("explicit", "Explicit"),
]


def progress_counts(event: ProgressEvent) -> tuple[int, int]:
    """Return (1-based position, percentage) for an event."""
    if event.total <= 0:
        return 0, 100
    position = min(event.current + 1, event.total)
    return position, int(position / event.total * 100)


def progress_bar(percentage: int, cells: int = BAR_CELLS) -> str:
    """Render a fixed-width bar of done/pending cells."""
    filled = int(percentage / 100 * cells)
    return DONE_CELL * filled + PENDING_CELL * (cells - filled)


def wrap_prompt(prompt: str, width: int = PROMPT_WIDTH, max_lines: int = PROMPT_LINES) -> list[str]:
    """
    Wrap a comma-separated prompt on phrase boundaries.

    Args:
        prompt: Full prompt text
        width: Maximum characters per line (a single longer phrase gets its own line)
        max_lines: Maximum number of lines returned

    Returns:
        Up to max_lines lines
    """
    lines: list[str] = []
    current = ""
    for phrase in prompt.split(", "):
        candidate = f"{current}, {phrase}" if current else phrase
        if current and len(candidate) > width:
            lines.append(current)
            current = phrase
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines[:max_lines]


def render_lines(event: ProgressEvent) -> list[str]:
    """Build the full status block for an event."""
    position, percentage = progress_counts(event)
    lines = [
        f"Progress: [{position}/{event.total}] ({percentage}%)",
        "",
        progress_bar(percentage),
        "",
        f"Status:   {event.status}",
    ]

    prompt_lines = wrap_prompt(event.prompt)
    for i in range(PROMPT_LINES):
        text = prompt_lines[i] if i < len(prompt_lines) else ""
        lines.append(f"Prompt:   {text}" if i == 0 else f"{INDENT}{text}")

    lines += [
        "",
        f"Model:    {event.model}",
        f"Style:    {event.style_preset or 'None'}",
        f"Config:   {event.cfg_scale:.2f}",
        f"Output:   {event.output_dir}",
        "",
    ]
    for key, label in TOGGLE_LABELS:
        state = "Enabled" if event.toggles.get(key) else "Disabled"
        lines.append(f"{label + ':':<10}{state}")

    lines += [
        "",
        f"Saved:    {event.images_saved}",
        f"Failed:   {event.failed_count}",
        f"Error:    {event.last_error or 'None'}",
    ]
    return lines


class TerminalDisplay:
    """Redraws a fixed status block at the top of the terminal."""

    def __init__(self):
        self._started = False

    def publish(self, event: ProgressEvent) -> None:
        if not self._started:
            click.clear()
            self._started = True
        # Cursor home, then overwrite each line and clear its tail
        click.echo("\033[H", nl=False)
        for line in render_lines(event):
            if line.startswith("Error:") and event.last_error:
                line = click.style(line, fg="red")
            click.echo(f"{line}\033[K")

    def close(self) -> None:
        """Restore cursor visibility and colors."""
        click.echo("\033[?25h\033[0m", nl=False)


class PlainDisplay:
    """Echoes one line per event; suitable for logs and non-TTY output."""

    def publish(self, event: ProgressEvent) -> None:
        position, _ = progress_counts(event)
        message = f"[{position}/{event.total}] {event.status}"
        if event.status == "Error" and event.last_error:
            message += f": {event.last_error}"
        click.echo(message)

    def close(self) -> None:
        pass


class NullDisplay:
    """Discards all events."""

    def publish(self, event: ProgressEvent) -> None:
        pass

    def close(self) -> None:
        pass
