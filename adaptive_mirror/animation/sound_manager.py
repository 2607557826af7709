"""
Sound Manager — short synthesized tones for session feedback.

Uses pygame.mixer for playback. Every tone is a sine wave rendered in
memory; nothing is read from or written to disk. Sound is off until the
user turns it on.
"""

from __future__ import annotations

import logging
import math
import struct
import wave
from io import BytesIO
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
PEAK_AMPLITUDE = 0.1

# (frequency Hz, duration s)
START_TONE = (440.0, 0.1)
TOGGLE_TONE = (600.0, 0.05)
SUCCESS_ARPEGGIO: List[float] = [523.25, 659.25, 783.99, 1046.50]  # C5 E5 G5 C6
ARPEGGIO_NOTE_SEC = 0.2
ARPEGGIO_STEP_MS = 100

# Whether pygame mixer is available
_mixer_available = False
try:
    import pygame.mixer
    _mixer_available = True
except ImportError:
    logger.warning("pygame not installed; sounds will be disabled.")


def synthesize_tone(frequency: float, duration: float, sample_rate: int = SAMPLE_RATE) -> List[float]:
    """
    Sine wave in [-1, 1] with a 10 ms attack and an exponential release
    down to 1% of the peak at the end of the tone.
    """
    count = max(1, int(sample_rate * duration))
    attack = max(1, int(sample_rate * 0.01))
    decay = math.log(100) / count
    samples = []
    for t in range(count):
        envelope = min(1.0, t / attack) * math.exp(-decay * t)
        samples.append(PEAK_AMPLITUDE * envelope * math.sin(2 * math.pi * frequency * t / sample_rate))
    return samples


def make_wav(samples: List[float], sample_rate: int = SAMPLE_RATE) -> bytes:
    """Pack float samples in [-1, 1] into a 16-bit mono WAV byte string."""
    buf = BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sample_rate)
        data = b"".join(
            struct.pack("<h", int(max(-1.0, min(1.0, s)) * 32767)) for s in samples
        )
        w.writeframes(data)
    return buf.getvalue()


class SoundManager:
    """Plays the start, toggle and success tones with a volume and a toggle."""

    def __init__(
        self,
        enabled: bool = False,
        volume: float = 0.5,
        scheduler: Optional[Callable[[int, Callable[[], None]], object]] = None,
    ) -> None:
        self.enabled = enabled
        self.volume = max(0.0, min(volume, 1.0))
        # scheduler(delay_ms, callback) staggers the arpeggio notes
        self.scheduler = scheduler
        self._initialized = False
        self._sounds: Dict[Tuple[float, float], object] = {}

        if _mixer_available and enabled:
            self._init_mixer()

    @property
    def available(self) -> bool:
        return _mixer_available

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
            self._initialized = True
            logger.info("Sound manager initialized.")
        except Exception as e:
            logger.warning("Could not init audio: %s", e)

    def _sound(self, frequency: float, duration: float):
        key = (frequency, duration)
        if key not in self._sounds:
            wav = make_wav(synthesize_tone(frequency, duration))
            self._sounds[key] = pygame.mixer.Sound(file=BytesIO(wav))
        return self._sounds[key]

    def play_tone(self, frequency: float, duration: float) -> None:
        if not self.enabled or not self._initialized:
            return
        try:
            sound = self._sound(frequency, duration)
            sound.set_volume(self.volume)
            sound.play()
        except Exception as e:
            logger.warning("Could not play %.0f Hz tone: %s", frequency, e)

    def play_start(self) -> None:
        self.play_tone(*START_TONE)

    def play_toggle(self) -> None:
        self.play_tone(*TOGGLE_TONE)

    def play_success(self) -> None:
        if not self.enabled or not self._initialized:
            return
        for i, freq in enumerate(SUCCESS_ARPEGGIO):
            if i == 0 or self.scheduler is None:
                self.play_tone(freq, ARPEGGIO_NOTE_SEC)
            else:
                self.scheduler(
                    i * ARPEGGIO_STEP_MS,
                    lambda f=freq: self.play_tone(f, ARPEGGIO_NOTE_SEC),
                )

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(volume, 1.0))

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled and not self._initialized and _mixer_available:
            self._init_mixer()

    def shutdown(self) -> None:
        if self._initialized:
            pygame.mixer.quit()
            self._initialized = False
            self._sounds.clear()


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Renders sine tones into in-memory WAV buffers and plays them through
#   pygame.mixer. Missing pygame or a failing audio device leaves the
#   feature off; nothing else depends on it.
#
# Data flow:
#   start button → play_start()
#   sound toggle → set_enabled() → play_toggle()
#   result revealed → play_success() → four notes staggered via the
#   TimerRegistry one-shot scheduler
