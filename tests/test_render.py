"""Tests for CLI rendering utilities."""
from ruang_hampa.domain.state import Keepsake, LogbookEntry, Relationships
from ruang_hampa.presentation.cli.render import (
    build_journal_lines,
    render_bar,
    render_notification,
    render_status,
    wrap_text_for_box,
)


def test_wrap_text_for_box_short_text() -> None:
    """Short text should not be wrapped."""
    assert wrap_text_for_box("Halo dunia", width=50) == ["Halo dunia"]


def test_wrap_text_for_box_long_text_wraps() -> None:
    text = "Kamu terbangun oleh suara jam weker yang memekakkan telinga dan sinar matahari pagi"
    result = wrap_text_for_box(text, width=30)

    assert len(result) > 1
    for line in result:
        assert len(line) <= 30
    assert " ".join(line.strip() for line in result) == text


def test_wrap_text_for_box_bullet_prefix() -> None:
    text = "- Sebuah pengingat tentang makan malam keluarga yang penting sekali"
    result = wrap_text_for_box(text, width=30, indent_continuation=True)

    assert result[0].startswith("- ")
    for line in result[1:]:
        assert line.startswith("  ")


def test_render_bar_scales_to_blocks() -> None:
    assert render_bar(0) == ".........."
    assert render_bar(50) == "#####....."
    assert render_bar(100) == "##########"
    assert render_bar(250) == "##########"


def test_render_status_shows_location_and_energy(capsys) -> None:
    render_status("Dapur", 45)
    output = capsys.readouterr().out

    assert "=== Dapur ===" in output
    assert "Energi Mental" in output
    assert "45" in output


def test_render_notification_marks_errors(capsys) -> None:
    render_notification("Progres disimpan.")
    render_notification("Gagal memuat permainan", "error")
    lines = capsys.readouterr().out.splitlines()

    assert lines == ["[*] Progres disimpan.", "[!] Gagal memuat permainan"]


def test_journal_lines_empty_state() -> None:
    lines = build_journal_lines([], Relationships(), [])

    assert "Kenang-kenangan" in lines
    assert "  Kamu belum menemukan kenang-kenangan apapun." in lines
    assert "  Belum ada pilihan." in lines


def test_journal_lines_list_keepsakes_relationships_and_choices() -> None:
    lines = build_journal_lines(
        [Keepsake("Pesan dari Surya", "Sebuah pengingat.")],
        Relationships(bapak=35, ibu=55, surya=50),
        [LogbookEntry("START", "Cek ponsel.", "2024-05-01T08:30:15.123Z")],
    )

    assert "  Pesan dari Surya" in lines
    assert "    Sebuah pengingat." in lines
    assert any(line.startswith("  Bapak") and line.endswith("35") for line in lines)
    assert "  1. Cek ponsel." in lines
