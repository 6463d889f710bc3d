"""Console-driven UI loops for Ruang Hampa."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Iterable, List, Literal, Tuple

from ruang_hampa.core.types import NotificationKind
from ruang_hampa.data.repositories import StoryRepository
from ruang_hampa.data.storage import FileKeyValueStore
from ruang_hampa.services import (
    KeepsakeDiscoveredEvent,
    LoadFailedEvent,
    LoadSucceededEvent,
    ObjectInspectedEvent,
    SaveFailedEvent,
    SaveSucceededEvent,
    StoryEngine,
    StoryNodeView,
)
from ruang_hampa.services.asset_service import AssetValidator, ImageLoader, ImageValidationFailedEvent
from ruang_hampa.services.settings_service import SettingsService
from ruang_hampa.services.story_graph_validator import format_issue, load_story_graph
from ruang_hampa.services.typewriter import DisplayBuffer, Typewriter, reveal_paragraphs
from ruang_hampa.presentation.cli import config, render

logger = logging.getLogger(__name__)

MenuAction = Literal["new_game", "continue", "settings", "journal", "reset", "quit"]
StoryInput = Tuple[Literal["choice", "object", "journal", "settings", "menu"], int]

INTRO_TYPING_SPEED = 20
_OBJECT_KEYS = "abcdefgh"


def build_engine(save_dir: Path | None = None) -> StoryEngine:
    """Construct the engine; settings are read before any progression record."""
    store = FileKeyValueStore(save_dir or config.get_save_dir())
    story_repo = StoryRepository()
    for issue in load_story_graph(story_repo):
        logger.warning(format_issue(issue))
    settings_service = SettingsService(store)
    return StoryEngine(story_repo, store, settings_service=settings_service)


def main() -> None:
    """Start the interactive CLI session."""
    config.configure_logging()
    engine = build_engine()
    asyncio.run(run_session(engine, ImageLoader(AssetValidator().read)))


async def run_session(engine: StoryEngine, image_loader: ImageLoader) -> None:
    print("=== Ruang Hampa ===")
    typewriter = Typewriter(DisplayBuffer(on_change=_echo))
    while True:
        action = await _main_menu_loop(engine.has_saved_game())
        if action == "quit":
            break
        if action == "new_game":
            engine.start_new_game()
            _notify_events(engine.pop_events())
            await _play(engine, image_loader, typewriter)
        elif action == "continue":
            loaded = engine.load_game()
            _notify_events(engine.pop_events())
            if loaded:
                await _play(engine, image_loader, typewriter)
        elif action == "settings":
            await _settings_menu(engine)
        elif action == "journal":
            _show_journal(engine)
        elif action == "reset":
            await _confirm_reset(engine)
    print("Sampai jumpa.")


def _main_menu_options(has_save: bool) -> List[Tuple[str, MenuAction]]:
    options: List[Tuple[str, MenuAction]] = [("Mulai Baru", "new_game")]
    if has_save:
        options.append(("Lanjutkan", "continue"))
    options.extend(
        [
            ("Pengaturan", "settings"),
            ("Jurnal", "journal"),
            ("Hapus Progres", "reset"),
            ("Keluar", "quit"),
        ]
    )
    return options


async def _main_menu_loop(has_save: bool) -> MenuAction:
    options = _main_menu_options(has_save)
    while True:
        render.render_menu("Menu Utama", [label for label, _ in options])
        raw = (await _console.read("Pilih opsi: ")).strip()
        try:
            index = int(raw) - 1
        except ValueError:
            print("Masukkan angka.")
            continue
        if 0 <= index < len(options):
            return options[index][1]
        print(f"Masukkan angka antara 1 dan {len(options)}.")


async def _play(engine: StoryEngine, image_loader: ImageLoader, typewriter: Typewriter) -> None:
    """Run the story loop until an ending or the player returns to the menu."""
    if not engine.get_state().has_seen_intro:
        await _run_skippable(
            typewriter.reveal(engine.get_intro_text(), INTRO_TYPING_SPEED), typewriter
        )
        print("\n")
        engine.mark_intro_as_seen()
        engine.save_game()
        _notify_events([event for event in engine.pop_events() if not isinstance(event, SaveSucceededEvent)])
    while True:
        view = engine.get_current_node_view()
        await _render_node(view, engine, image_loader, typewriter)
        if view.is_ending:
            render.render_heading("Tamat")
            _show_journal(engine)
            await _console.read("Tekan Enter untuk kembali ke menu utama.")
            return
        while True:
            selection = await _prompt_story_input(view)
            kind, index = selection
            if kind == "object":
                event = engine.interact_with_object(view.objects[index])
                _notify_events([event])
                continue
            if kind == "journal":
                _show_journal(engine)
                continue
            if kind == "settings":
                await _settings_menu(engine)
                continue
            if kind == "menu":
                return
            result = engine.apply_choice(view.choices[index])
            _notify_events(result.events)
            break


async def _render_node(
    view: StoryNodeView, engine: StoryEngine, image_loader: ImageLoader, typewriter: Typewriter
) -> None:
    typewriter.cancel()
    image = await image_loader.load(view.image)
    _notify_events(image_loader.pop_events())
    if image is not None and image.ok and image.art:
        render.render_art(image.art)
    render.render_status(view.location, view.mental_energy)
    if config.debug_enabled():
        print(f"[{view.node_id}]")
    print()
    await _run_skippable(
        reveal_paragraphs(typewriter, view.paragraphs, engine.get_state().typing_speed), typewriter
    )
    print()
    _render_options(view)


def _render_options(view: StoryNodeView) -> None:
    if view.objects:
        render.render_heading("Lihat Sekitar")
        for key, obj in zip(_OBJECT_KEYS, view.objects):
            print(f"{key}. {obj.name}")
    if view.choices:
        render.render_heading("Pilihan")
        for idx, choice in enumerate(view.choices, start=1):
            print(f"{idx}. {choice.text}")
        print("(j = jurnal, s = pengaturan, m = menu utama)")


def parse_story_input(raw: str, choice_count: int, object_count: int) -> StoryInput | None:
    """Map a typed command to an action, or None when it is not valid here."""
    value = raw.strip().lower()
    if value == "j":
        return ("journal", 0)
    if value == "s":
        return ("settings", 0)
    if value == "m":
        return ("menu", 0)
    if len(value) == 1 and value in _OBJECT_KEYS[:object_count]:
        return ("object", _OBJECT_KEYS.index(value))
    try:
        index = int(value) - 1
    except ValueError:
        return None
    if 0 <= index < choice_count:
        return ("choice", index)
    return None


async def _prompt_story_input(view: StoryNodeView) -> StoryInput:
    while True:
        raw = await _console.read("> ")
        selection = parse_story_input(raw, len(view.choices), len(view.objects))
        if selection is not None:
            return selection
        print("Pilihan tidak dikenal.")


async def _settings_menu(engine: StoryEngine) -> None:
    current = engine.get_state().typing_speed
    render.render_heading("Pengaturan")
    print(f"Kecepatan teks saat ini: {current} ms per huruf (1 = cepat, 100 = lambat)")
    raw = (await _console.read("Kecepatan baru (kosongkan untuk batal): ")).strip()
    if not raw:
        return
    try:
        speed = int(raw)
    except ValueError:
        print("Masukkan angka.")
        return
    applied = engine.set_typing_speed(speed)
    _notify_events(engine.pop_events())
    print(f"Kecepatan teks: {applied}")


async def _confirm_reset(engine: StoryEngine) -> None:
    answer = (await _console.read("Hapus semua progres tersimpan? (y/n): ")).strip().lower()
    if answer != "y":
        return
    engine.reset_game()
    _notify_events(engine.pop_events())
    render.render_notification("Game telah direset")


def _show_journal(engine: StoryEngine) -> None:
    render.render_heading("Jurnal")
    for line in render.build_journal_lines(
        engine.get_keepsakes(), engine.get_relationships(), engine.get_logbook()
    ):
        print(line)


def _notify_events(events: Iterable[object]) -> None:
    for message, kind in describe_events(events):
        render.render_notification(message, kind)


def describe_events(events: Iterable[object]) -> List[Tuple[str, NotificationKind]]:
    """Turn engine notifications into user-facing messages."""
    messages: List[Tuple[str, NotificationKind]] = []
    for event in events:
        if isinstance(event, KeepsakeDiscoveredEvent):
            messages.append((f"Kenang-kenangan ditemukan: {event.name}", "success"))
        elif isinstance(event, ObjectInspectedEvent):
            messages.append((event.description, "success"))
        elif isinstance(event, SaveSucceededEvent):
            messages.append(("Progres disimpan.", "success"))
        elif isinstance(event, SaveFailedEvent):
            messages.append(("Progres gagal disimpan. Permainan tetap berjalan.", "error"))
        elif isinstance(event, LoadSucceededEvent):
            messages.append(("Permainan berhasil dimuat", "success"))
        elif isinstance(event, LoadFailedEvent):
            messages.append(("Gagal memuat permainan", "error"))
        elif isinstance(event, ImageValidationFailedEvent):
            messages.append(("Gambar gagal dimuat", "error"))
    return messages


def _echo(piece: str, _text: str) -> None:
    print(piece, end="", flush=True)


class ConsoleInput:
    """Line reader that keeps at most one stdin read in flight.

    A thread blocked in ``input()`` cannot be cancelled, so a read started to
    catch Enter during a reveal is handed to the next prompt when the reveal
    finishes first.
    """

    def __init__(self) -> None:
        self._pending: asyncio.Future[str] | None = None

    async def read(self, prompt: str) -> str:
        pending = self._pending
        self._pending = None
        if pending is None:
            return await asyncio.to_thread(input, prompt)
        print(prompt, end="", flush=True)
        return await pending

    def listen(self) -> asyncio.Future[str]:
        if self._pending is None:
            self._pending = asyncio.ensure_future(asyncio.to_thread(input, ""))
        return self._pending

    def take(self) -> str:
        pending = self._pending
        self._pending = None
        return pending.result() if pending is not None else ""


_console = ConsoleInput()


async def _run_skippable(reveal: Awaitable[object], typewriter: Typewriter) -> None:
    """Run a reveal; a line entered while it runs shows the rest at once."""
    task = asyncio.ensure_future(reveal)
    listener = _console.listen()
    await asyncio.wait({task, listener}, return_when=asyncio.FIRST_COMPLETED)
    if not task.done() and listener.exception() is None:
        _console.take()
        logger.debug("Reveal skipped")
        # Between paragraphs the active handle is already complete; retry until the next one starts.
        while not task.done():
            typewriter.skip()
            await asyncio.sleep(0)
    await task
