"""Shared CLI rendering helpers."""
from __future__ import annotations

import textwrap
from typing import Iterable, Sequence

from ruang_hampa.core.types import NotificationKind
from ruang_hampa.domain.state import Keepsake, LogbookEntry, Relationships

BAR_BLOCKS = 10


def wrap_text_for_box(text: str, width: int, *, indent_continuation: bool = True) -> list[str]:
    """
    Wrap text to fit within a fixed width, breaking on word boundaries.

    Args:
        text: The text to wrap
        width: Maximum width per line
        indent_continuation: If True, indent continuation lines with 2 spaces

    Returns:
        List of wrapped lines, each <= width characters
    """
    if not text or width <= 0:
        return [text] if text else [""]
    subsequent_indent = "  " if indent_continuation else ""
    prefix = ""
    if text.startswith("- "):
        prefix, text = "- ", text[2:]
    wrapped = textwrap.wrap(
        text,
        width=width - len(prefix),
        subsequent_indent=subsequent_indent,
        break_long_words=False,
        break_on_hyphens=False,
    )
    if not wrapped:
        return [prefix.rstrip()]
    wrapped[0] = prefix + wrapped[0]
    return wrapped


def render_bar(value: int, blocks: int = BAR_BLOCKS) -> str:
    """Render a 0-100 value as filled and empty blocks."""
    active = round((max(0, min(100, value)) / 100) * blocks)
    return "#" * active + "." * (blocks - active)


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_status(location: str, mental_energy: int) -> None:
    render_heading(location)
    print(f"Energi Mental [{render_bar(mental_energy)}] {mental_energy}")


def render_art(art: str) -> None:
    print(art.rstrip("\n"))


def render_notification(message: str, kind: NotificationKind = "success") -> None:
    marker = "*" if kind == "success" else "!"
    print(f"[{marker}] {message}")


def render_menu(title: str, options: Sequence[str]) -> None:
    """Display a menu section with numbered options."""
    render_heading(title)
    for idx, label in enumerate(options, start=1):
        print(f"{idx}. {label}")


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")


def build_journal_lines(
    keepsakes: Sequence[Keepsake],
    relationships: Relationships,
    logbook: Sequence[LogbookEntry],
    *,
    width: int = 72,
) -> list[str]:
    """Journal text: keepsakes, relationship bars and the choice log."""
    lines: list[str] = ["Kenang-kenangan"]
    if not keepsakes:
        lines.append("  Kamu belum menemukan kenang-kenangan apapun.")
    for keepsake in keepsakes:
        lines.append(f"  {keepsake.name}")
        lines.extend(f"    {line}" for line in wrap_text_for_box(keepsake.description, width - 4, indent_continuation=False))
    lines.append("")
    lines.append("Hubungan")
    for label, value in (("Ibu", relationships.ibu), ("Bapak", relationships.bapak), ("Surya", relationships.surya)):
        lines.append(f"  {label:<6} [{render_bar(value)}] {value}")
    lines.append("")
    lines.append("Catatan Pilihan")
    if not logbook:
        lines.append("  Belum ada pilihan.")
    for index, entry in enumerate(logbook, start=1):
        lines.append(f"  {index}. {entry.choice}")
    return lines
