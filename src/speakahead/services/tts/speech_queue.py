"""
Speech Queue for Ordered Fragment Playback.

This module provides the playback queue used while a sentence is being spoken.
Fragments are synthesized as soon as they are enqueued, possibly several at
once, but are always played in the order they were submitted.

Architecture:
    enqueue(text) → slot + materialize task → drain loop → AudioPlayer.play()

Each enqueue appends a slot holding the materialization task for that
fragment. The drain loop (one per queue) awaits the head slot, plays it and
waits for the player to report completion before moving to the next slot, so
a fragment that synthesizes quickly still waits for the fragments submitted
before it.

Cancellation:
- stop() bumps the queue generation, cancels the drain loop and every
  in-flight synthesis, and clears all slots
- A synthesis that completes after stop() carries an old generation and is
  discarded without side effects

Usage:
    queue = SpeechQueue(tts_service, player, event_handler=on_event)

    queue.prefetch("hello")     # measure a word before speaking starts
    queue.enqueue("hello there")
    queue.enqueue("friend")
    ...
    queue.stop()                # reset or error
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Dict, Optional, Set, TYPE_CHECKING

from speakahead.services.tts_service import SynthesizedAudio, VoiceParams

if TYPE_CHECKING:
    from speakahead.services.tts.playback import AudioPlayer
    from speakahead.services.tts_service import SynthesisBackend

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], Awaitable[None]]


@dataclass
class _Slot:
    index: int
    text: str
    source: "asyncio.Task[Optional[SynthesizedAudio]]"


class SpeechQueue:
    """
    Ordered, single-consumer playback queue.

    Events are passed to ``event_handler`` as dicts:
        duration_measured  {"text", "duration"}
        fragment_started   {"index", "text"}
        fragment_finished  {"index", "text"}
        fragment_failed    {"index", "text", "error"}
        idle               {}

    Attributes:
        backend: Synthesis backend turning text into audio
        player: Player whose play() returns when a clip has finished
        voice: Voice parameters used for every synthesis request
    """

    def __init__(
        self,
        backend: "SynthesisBackend",
        player: "AudioPlayer",
        voice: Optional[VoiceParams] = None,
        event_handler: Optional[EventHandler] = None,
    ):
        self.backend = backend
        self.player = player
        self.voice = voice or VoiceParams()
        self.event_handler = event_handler

        self._generation = 0
        self._next_index = 0
        self._slots: Deque[_Slot] = deque()
        self._clips: Dict[str, "asyncio.Task[Optional[SynthesizedAudio]]"] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._drain_task: Optional[asyncio.Task] = None
        self._current: Optional[_Slot] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_active(self) -> bool:
        """True while fragments are pending or playing."""
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def is_playing(self) -> bool:
        return self._current is not None

    @property
    def state(self) -> str:
        return "playing" if self.is_active else "idle"

    @property
    def pending(self) -> int:
        return len(self._slots)

    def enqueue(self, fragment: str) -> None:
        """Queue a fragment for synthesis and ordered playback. Never blocks."""
        fragment = fragment.strip()
        if not fragment:
            return

        source = self._clips.pop(fragment, None)
        if source is None or (source.done() and (source.cancelled() or source.exception())):
            source = self._spawn(self._materialize(fragment, self._generation))

        slot = _Slot(index=self._next_index, text=fragment, source=source)
        self._next_index += 1
        self._slots.append(slot)
        logger.debug(f"Enqueued fragment {slot.index}: {fragment[:50]}")
        self._ensure_draining()

    def prefetch(self, text: str) -> None:
        """Synthesize a fragment ahead of time to learn its duration.

        The clip is reused if the same text is enqueued before the next stop().
        """
        text = text.strip()
        if not text or text in self._clips:
            return
        self._clips[text] = self._spawn(self._materialize(text, self._generation))

    def stop(self) -> None:
        """Clear the queue, interrupt playback and return to idle. Safe when idle."""
        self._generation += 1
        was_active = self.is_active

        if self._drain_task is not None:
            self._drain_task.cancel()
            self._drain_task = None
        for task in list(self._tasks):
            task.cancel()

        dropped = len(self._slots)
        self._slots.clear()
        self._clips.clear()
        self._current = None

        if was_active or dropped:
            logger.info(f"Speech queue stopped, dropped {dropped} pending fragment(s)")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        # Failures are reported by the drain loop; prefetch failures only matter
        # as a missing duration. Mark them retrieved either way.
        if not task.cancelled():
            task.exception()

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _materialize(self, text: str, generation: int) -> Optional[SynthesizedAudio]:
        clip = await self.backend.synthesize(text, self.voice)
        if generation != self._generation:
            logger.debug(f"Discarding stale synthesis for: {text[:40]}")
            return None
        await self._emit({
            "type": "duration_measured",
            "text": text,
            "duration": clip.duration_seconds,
        })
        return clip

    async def _drain(self) -> None:
        while True:
            while self._slots:
                slot = self._slots[0]
                try:
                    clip = await slot.source
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    self._pop(slot)
                    logger.error(f"Synthesis failed for fragment {slot.index}, skipping: {e}")
                    await self._emit({
                        "type": "fragment_failed",
                        "index": slot.index,
                        "text": slot.text,
                        "error": str(e),
                    })
                    continue

                self._pop(slot)
                if clip is None:
                    continue

                self._current = slot
                await self._emit({"type": "fragment_started", "index": slot.index, "text": slot.text})
                try:
                    await self.player.play(clip, slot.text)
                finally:
                    if self._current is slot:
                        self._current = None
                await self._emit({"type": "fragment_finished", "index": slot.index, "text": slot.text})

            await self._emit({"type": "idle"})
            # Fragments enqueued while the idle event was being delivered
            if not self._slots:
                break

    def _pop(self, slot: _Slot) -> None:
        if self._slots and self._slots[0] is slot:
            self._slots.popleft()

    async def _emit(self, event: dict) -> None:
        if self.event_handler is None:
            return
        try:
            await self.event_handler(event)
        except Exception as e:
            logger.error(f"Speech queue event handler failed for {event.get('type')}: {e}", exc_info=True)


__all__ = ["EventHandler", "SpeechQueue"]
