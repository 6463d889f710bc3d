"""Incremental, cancelable text reveal."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Sequence

logger = logging.getLogger(__name__)


def tokenize_reveal(text: str) -> List[str]:
    """Split text into reveal steps.

    Each step is one character, except that a complete ``<...>`` markup tag is
    a single step so it is never shown half-written. A ``<`` without a closing
    ``>`` is an ordinary character.
    """
    tokens: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "<":
            tag_end = text.find(">", index)
            if tag_end != -1:
                tokens.append(text[index : tag_end + 1])
                index = tag_end + 1
                continue
        tokens.append(char)
        index += 1
    return tokens


class CancellationToken:
    """Owned by exactly one reveal; checked at every suspension point."""

    def __init__(self) -> None:
        self._cancelled = False
        self._wake = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        self._wake.set()

    async def sleep(self, delay_seconds: float) -> None:
        """Wait for the delay, returning early once cancelled."""
        if self._cancelled:
            return
        if delay_seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=delay_seconds)
        except asyncio.TimeoutError:
            pass


class DisplayBuffer:
    """The display target a reveal writes into."""

    def __init__(self, on_change: Callable[[str, str], None] | None = None) -> None:
        self._parts: List[str] = []
        self._on_change = on_change

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def clear(self) -> None:
        self._parts = []

    def append(self, piece: str) -> None:
        self._parts.append(piece)
        if self._on_change is not None:
            self._on_change(piece, self.text)


class RevealHandle:
    """One running reveal of one text."""

    def __init__(self, text: str, target: DisplayBuffer, token: CancellationToken) -> None:
        self.text = text
        self._target = target
        self._token = token
        self._task: asyncio.Task[None] | None = None
        self._revealed = 0
        self.completed = False
        self.skipped = False

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        """Stop appending; what is already shown stays."""
        self._token.cancel()

    def skip(self) -> None:
        """Show the rest of the text immediately."""
        if self.completed or self._token.cancelled:
            return
        self._token.cancel()
        remaining = self.text[self._revealed:]
        if remaining:
            self._target.append(remaining)
            self._revealed = len(self.text)
        self.completed = True
        self.skipped = True

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self, delay_seconds: float) -> None:
        for token in tokenize_reveal(self.text):
            if self._token.cancelled:
                return
            self._target.append(token)
            self._revealed += len(token)
            await self._token.sleep(delay_seconds)
        if not self._token.cancelled:
            self.completed = True

    def _start(self, delay_seconds: float) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run(delay_seconds))


class Typewriter:
    """Runs at most one reveal at a time on a single display target."""

    def __init__(self, target: DisplayBuffer) -> None:
        self._target = target
        self._active: RevealHandle | None = None

    @property
    def target(self) -> DisplayBuffer:
        return self._target

    @property
    def active(self) -> RevealHandle | None:
        if self._active is not None and self._active.done:
            return None
        return self._active

    def start(self, text: str, delay_ms: int, *, clear: bool = True) -> RevealHandle:
        """Cancel any running reveal, then begin revealing ``text``.

        Must be called from inside a running event loop. ``delay_ms`` is the
        per-character delay; higher is slower.
        """
        self.cancel()
        if clear:
            self._target.clear()
        handle = RevealHandle(text, self._target, CancellationToken())
        self._active = handle
        handle._start(max(delay_ms, 0) / 1000)
        return handle

    async def reveal(self, text: str, delay_ms: int, *, clear: bool = True) -> RevealHandle:
        handle = self.start(text, delay_ms, clear=clear)
        await handle.wait()
        return handle

    def skip(self) -> None:
        if self._active is not None:
            self._active.skip()

    def cancel(self) -> None:
        if self._active is not None and not self._active.done:
            logger.debug("Cancelling active reveal")
            self._active.cancel()


async def reveal_paragraphs(
    typewriter: Typewriter,
    paragraphs: Sequence[str],
    delay_ms: int,
    *,
    separator: str = "\n\n",
) -> bool:
    """Reveal paragraphs one after another into the same target.

    Returns False when a paragraph was cut short by cancellation.
    """
    typewriter.target.clear()
    for index, paragraph in enumerate(paragraphs):
        text = paragraph if index == 0 else separator + paragraph
        handle = await typewriter.reveal(text, delay_ms, clear=False)
        if handle.skipped:
            rest = paragraphs[index + 1 :]
            if rest:
                typewriter.target.append(separator + separator.join(rest))
            return True
        if not handle.completed:
            return False
    return True
