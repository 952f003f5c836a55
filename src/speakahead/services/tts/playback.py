"""
Audio players used by the speech queue.

A player's ``play()`` coroutine returns when the clip has finished playing.
Cancelling it is how playback is interrupted: the queue cancels its drain task
on ``stop()``, and players release or silence their output in response.
"""

import asyncio
import base64
import logging
from typing import Awaitable, Callable, Optional, Protocol

from speakahead.services.tts_service import SynthesizedAudio

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    async def play(self, clip: SynthesizedAudio, text: str) -> None: ...


class TimedPlayer:
    """
    Player that treats a clip as finished once its duration has elapsed.

    Used when nobody is connected to play the audio (and by the simulation
    harness) so the queue still paces itself like real speech.
    """

    def __init__(self, time_scale: float = 1.0):
        self.time_scale = time_scale

    async def play(self, clip: SynthesizedAudio, text: str) -> None:
        logger.debug(f"Timed playback ({clip.duration_seconds:.2f}s): {text[:40]}")
        await asyncio.sleep(max(clip.duration_seconds, 0.0) * self.time_scale)


class ClientPlayer:
    """
    Player that hands audio to a connected client and waits for it to report
    the end of playback.

    Attributes:
        send: Coroutine delivering a JSON message to the client. Returns False
              when no client received it, in which case playback is timed
              by the clip duration instead.
        grace_seconds: Extra time past the clip duration before a missing
                       completion report is treated as completion.
    """

    def __init__(
        self,
        send: Callable[[dict], Awaitable[bool]],
        grace_seconds: float = 2.0,
    ):
        self.send = send
        self.grace_seconds = grace_seconds
        self._fragment_index = 0
        self._done: Optional[asyncio.Event] = None

    @property
    def is_waiting(self) -> bool:
        return self._done is not None

    def playback_complete(self) -> None:
        """Signal from the client that the current clip finished."""
        if self._done is not None:
            self._done.set()

    async def play(self, clip: SynthesizedAudio, text: str) -> None:
        index = self._fragment_index
        self._fragment_index += 1
        done = asyncio.Event()
        self._done = done

        try:
            delivered = await self.send({
                "type": "audio",
                "fragment_index": index,
                "text": text,
                "mime_type": clip.mime_type,
                "sample_rate": clip.sample_rate,
                "duration": clip.duration_seconds,
                "data": base64.b64encode(clip.audio).decode("utf-8"),
            })

            if not delivered:
                await asyncio.sleep(clip.duration_seconds)
                return

            try:
                await asyncio.wait_for(
                    done.wait(), timeout=clip.duration_seconds + self.grace_seconds
                )
            except asyncio.TimeoutError:
                logger.warning(f"No playback_complete for fragment {index}, continuing")
        except asyncio.CancelledError:
            await self.send({"type": "interrupt_playback", "fragment_index": index})
            raise
        finally:
            # A newer play() may already own the slot
            if self._done is done:
                self._done = None


__all__ = ["AudioPlayer", "ClientPlayer", "TimedPlayer"]
