import asyncio
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from speakahead.services.tts_service import SynthesisError, SynthesizedAudio  # noqa: E402


class FakeBackend:
    """Synthesis backend with controllable latency and failures.

    Every word of a fragment lasts ``seconds_per_word`` seconds.
    """

    def __init__(self, seconds_per_word: float = 0.01):
        self.seconds_per_word = seconds_per_word
        self.calls: list[str] = []
        self.failures: set[str] = set()
        self._holds: dict[str, asyncio.Event] = {}

    def hold(self, text: str) -> asyncio.Event:
        """Block synthesis of ``text`` until the returned event is set."""
        event = asyncio.Event()
        self._holds[text] = event
        return event

    async def synthesize(self, text, params) -> SynthesizedAudio:
        self.calls.append(text)
        hold = self._holds.get(text)
        if hold is not None:
            await hold.wait()
        if text in self.failures:
            raise SynthesisError(f"backend rejected {text!r}")
        return SynthesizedAudio(
            audio=text.encode("utf-8"),
            duration_seconds=self.seconds_per_word * len(text.split()),
            sample_rate=24000,
        )


class RecordingPlayer:
    """Player that records what it played. Blocks while ``gate`` is unset."""

    def __init__(self):
        self.played: list[str] = []
        self.gate: asyncio.Event | None = None

    async def play(self, clip, text) -> None:
        self.played.append(text)
        if self.gate is not None:
            await self.gate.wait()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def player() -> RecordingPlayer:
    return RecordingPlayer()


@pytest.fixture
def until():
    """Await until a condition holds (bounded)."""
    return wait_until
