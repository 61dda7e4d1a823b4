from __future__ import annotations

import logging
import threading
from typing import Optional

import numpy as np

from .pipeline import DisplaySink

logger = logging.getLogger(__name__)


TICK_MIDI = 69      # A4 per countdown second
SHUTTER_MIDI = 81   # A5 when the photo is taken


def midi_to_freq(midi_note: int) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def render_tone(frames: int, frequency: float, phase: int, sample_rate: int, volume: float) -> np.ndarray:
    """Sine samples [phase, phase + frames) as float32."""
    t = (np.arange(frames) + phase) / sample_rate
    return (volume * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


class CountdownBeeper(DisplaySink):
    """
    Audible countdown: a short beep per countdown value and a higher tone
    when the capture tip arrives.

    Audio runs in a sounddevice output stream; `beep()` only updates state
    under a lock so it is safe to call from the frame loop.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        volume: float = 0.3,
        beep_seconds: float = 0.12,
    ) -> None:
        self.sample_rate = sample_rate
        self.volume = max(0.0, min(1.0, volume))
        self.beep_seconds = beep_seconds

        self._stream = None
        self._lock = threading.Lock()
        self._frequency = 0.0
        self._remaining = 0
        self._phase = 0

    def start(self) -> None:
        """Start the audio stream."""
        if self._stream is not None:
            return
        # Imported here so the pipeline works on machines without PortAudio.
        import sounddevice as sd

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            callback=self._audio_callback,
            blocksize=512,
        )
        self._stream.start()
        logger.debug("Countdown audio started")

    def stop(self) -> None:
        """Stop the audio stream."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def beep(self, midi_note: int, seconds: Optional[float] = None) -> None:
        with self._lock:
            self._frequency = midi_to_freq(midi_note)
            self._remaining = int(self.sample_rate * (self.beep_seconds if seconds is None else seconds))
            self._phase = 0

    @property
    def playing(self) -> bool:
        with self._lock:
            return self._remaining > 0

    # DisplaySink

    def show_countdown(self, value: Optional[int]) -> None:
        if value is not None:
            self.beep(TICK_MIDI)

    def show_tip(self, tip: Optional[str]) -> None:
        if tip:
            self.beep(SHUTTER_MIDI, self.beep_seconds * 2)

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        """
        Audio callback for the sounddevice stream.

        Args:
            outdata: Output buffer to fill with audio samples
            frames: Number of frames to generate
            time_info: Timing information from the audio system
            status: Stream status flags indicating errors or warnings
        """
        with self._lock:
            outdata[:] = 0
            if self._remaining <= 0 or self._frequency <= 0:
                return
            n = min(frames, self._remaining)
            outdata[:n, 0] = render_tone(n, self._frequency, self._phase, self.sample_rate, self.volume)
            self._phase += n
            self._remaining -= n

    def __enter__(self) -> "CountdownBeeper":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
