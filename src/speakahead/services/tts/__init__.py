"""
Speech timing and playback package.

This package contains the pieces that turn typed text into ordered speech:

- word_segmenter: Splits the live text buffer into completed words
- speech_queue: Ordered synthesis and playback queue
- playback: Players that report when a clip has finished

Architecture Overview:

    ┌────────────┐     ┌───────────────┐     ┌───────────────────┐
    │ Text input │────▶│ WordSegmenter │────▶│ SessionController │
    └────────────┘     └───────────────┘     └───────────────────┘
                                                       │ enqueue()
                                                       ▼
                       ┌───────────────┐     ┌───────────────────┐
                       │  TTSService   │◀────│    SpeechQueue    │
                       └───────────────┘     └───────────────────┘
                                                       │ play()
                                                       ▼
                                             ┌───────────────────┐
                                             │    AudioPlayer    │
                                             └───────────────────┘

Fragments are synthesized concurrently but played strictly in the order they
were enqueued; a player's completion signal releases the next fragment.
"""

from .playback import AudioPlayer, ClientPlayer, TimedPlayer
from .speech_queue import SpeechQueue
from .word_segmenter import Word, new_words_since, segment

__all__ = [
    "AudioPlayer",
    "ClientPlayer",
    "SpeechQueue",
    "TimedPlayer",
    "Word",
    "new_words_since",
    "segment",
]
