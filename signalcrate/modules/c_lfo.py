"""Low-frequency oscillator producing a unipolar control signal."""

from __future__ import annotations

import enum
import math
from typing import Optional

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    TWO_PI,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
    sine_table,
)

_MOD_DEPTH = 0.5
_MIN_HZ = 0.1
_MAX_HZ = 100.0


class Waveform(enum.Enum):
    """Shape of the oscillator."""

    SINE = 0
    SAW = 1
    SQUARE = 2
    TRIANGLE = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def next(self) -> "Waveform":
        return Waveform((self.value + 1) % len(Waveform))


class LFO(Module):
    """Sine, saw, square or triangle oscillator scaled by amplitude and depth."""

    type_name = "c_lfo"

    _STEPS = {
        "=": ("frequency", 0.01),
        "-": ("frequency", -0.01),
        "+": ("amplitude", 0.01),
        "_": ("amplitude", -0.01),
        "D": ("depth", 0.01),
        "d": ("depth", -0.01),
    }

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.frequency = parse_create_arg(args, "freq", 1.0)
        self.amplitude = parse_create_arg(args, "amp", 1.0)
        self.depth = parse_create_arg(args, "depth", 0.5)
        self.waveform = Waveform.SINE
        self.phase = 0.0
        self.tri_state = 0.0
        self._smooth_freq = Smoother(0.75)
        self._smooth_amp = Smoother(0.75)
        self._smooth_depth = Smoother(0.75)
        self.display_freq = 0.0
        self.display_amp = 0.0
        self.display_depth = 0.0
        self.control_output = [0.0] * FRAMES_PER_BUFFER
        self._commands = {
            "1": "frequency",
            "2": "amplitude",
            "3": self._set_waveform,
            "d": "depth",
        }
        self._actions = {"w": self._next_waveform}
        self._clamp()

    def _clamp(self) -> None:
        self.frequency = clamp(self.frequency, 0.001, 100.0)
        self.amplitude = clamp(self.amplitude, 0.0, 1.0)
        self.depth = clamp(self.depth, 0.0, 1.0)

    def _next_waveform(self) -> None:
        self.waveform = self.waveform.next()

    def _set_waveform(self, value: float) -> None:
        self.waveform = Waveform(int(value) % len(Waveform))

    def process_control(self) -> None:
        with self._lock:
            freq = self._smooth_freq.step(self.frequency)
            amp = self._smooth_amp.step(self.amplitude)
            depth = self._smooth_depth.step(self.depth)
            waveform = self.waveform

        for param, norm in self._modulations():
            if param == "freq":
                freq = self.frequency + norm * self.frequency * _MOD_DEPTH
            elif param == "amp":
                amp = self.amplitude + norm * (1.0 - self.amplitude) * _MOD_DEPTH
            elif param == "depth":
                depth = self.depth + norm * (1.0 - self.depth) * _MOD_DEPTH

        self.control_output_depth = clamp(_MOD_DEPTH, 0.0, 1.0)

        amp = clamp(amp, 0.0, 1.0)
        self.display_freq = freq
        self.display_amp = amp
        self.display_depth = depth

        table = sine_table()
        size = len(table)
        increment = TWO_PI * freq / self.sample_rate
        out = []
        for _ in range(FRAMES_PER_BUFFER):
            t = self.phase / TWO_PI
            if waveform is Waveform.SINE:
                value = table[int(t * size) % size]
            elif waveform is Waveform.SAW:
                value = 2.0 * t - 1.0
            elif waveform is Waveform.SQUARE:
                value = 1.0 if t < 0.5 else -1.0
            else:
                square = 1.0 if t < 0.5 else -1.0
                self.tri_state += 2.0 * freq / self.sample_rate * square
                value = math.tanh(self.tri_state) * 2.0
            out.append(clamp(depth * (amp * (0.5 + 0.5 * value)), 0.0, 1.0))
            self.phase += increment
            if self.phase >= TWO_PI:
                self.phase -= TWO_PI
        self.control_output = out

    def status_lines(self) -> list[str]:
        with self._lock:
            freq, amp, depth = self.display_freq, self.display_amp, self.display_depth
            waveform = self.waveform
        return [
            f"[LFO:{self.name}] Freq: {freq:.3f} Hz | Amp: {amp:.2f} | Depth: {depth:.2f}"
            f" | Wave: {waveform.label}",
            "Real-time keys: -/= (freq), _/+ (amp), d/D (depth), w (wave)",
            "Command mode: :1 [freq], :2 [amp], :d [depth]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._commands, self._actions)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "freq":
                norm = clamp(value, 0.0, 1.0)
                self.frequency = _MIN_HZ * (_MAX_HZ / _MIN_HZ) ** norm
            elif param == "amp":
                self.amplitude = value
            elif param == "depth":
                self.depth = value
            elif param == "wave" and value > 0.5:
                self._next_waveform()