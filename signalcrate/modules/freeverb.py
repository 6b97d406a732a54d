"""Schroeder/Moorer style reverb built from comb and allpass delay lines."""

from __future__ import annotations

from typing import Optional, Sequence

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
)

NUM_COMBS = 8
NUM_ALLPASS = 4
MAX_DELAY = 2048

COMB_LENGTHS = (1116, 1188, 1277, 1356, 1422, 1491, 1557, 1617)
ALLPASS_LENGTHS = (556, 441, 341, 225)
ALLPASS_GAIN = 0.5


class DelayLine:
    """Fixed-length circular delay line."""

    def __init__(self, size: int) -> None:
        if not 0 < size <= MAX_DELAY:
            raise ValueError(f"delay line size must be in 1..{MAX_DELAY}, got {size}")
        self.size = size
        self.index = 0
        self.buffer = [0.0] * size

    def push(self, value: float) -> float:
        """Store ``value`` and return the sample written ``size`` pushes ago."""
        out = self.buffer[self.index]
        self.buffer[self.index] = value
        self.index = (self.index + 1) % self.size
        return out

    def allpass(self, value: float) -> float:
        """Run one sample through the line used as an allpass filter."""
        delayed = self.buffer[self.index]
        self.buffer[self.index] = value + delayed * ALLPASS_GAIN
        self.index = (self.index + 1) % self.size
        return -value + delayed


class Freeverb(Module):
    """Parallel damped combs followed by serial allpasses, mixed with the dry input."""

    type_name = "freeverb"

    _STEPS = {
        "-": ("feedback", -0.01),
        "=": ("feedback", 0.01),
        "_": ("damping", -0.01),
        "+": ("damping", 0.01),
        "[": ("wet", -0.01),
        "]": ("wet", 0.01),
    }
    _COMMANDS = {"1": "feedback", "2": "damping", "3": "wet"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.feedback = parse_create_arg(args, "fb", 0.5)
        self.damping = parse_create_arg(args, "damp", 0.5)
        self.wet = parse_create_arg(args, "wet", 0.33)
        self.combs = [DelayLine(length) for length in COMB_LENGTHS]
        self.allpasses = [DelayLine(length) for length in ALLPASS_LENGTHS]
        self._filterstore = [0.0] * NUM_COMBS
        self._smooth_feedback = Smoother(0.5)
        self._smooth_damping = Smoother(0.5)
        self._smooth_wet = Smoother(0.5)
        self.display_feedback = 0.0
        self.display_damping = 0.0
        self.display_wet = 0.0
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        self.feedback = clamp(self.feedback, 0.0, 0.99)
        self.damping = clamp(self.damping, 0.0, 1.0)
        self.wet = clamp(self.wet, 0.0, 1.0)

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            fb = self._smooth_feedback.step(self.feedback)
            damp = self._smooth_damping.step(self.damping)
            wet = self._smooth_wet.step(self.wet)

        for param, norm in self._modulations():
            if param == "fb":
                fb = self.feedback + norm * self.feedback
            elif param == "damp":
                damp = self.damping + norm * (1.0 - self.damping)
            elif param == "wet":
                wet = self.wet + norm * (1.0 - self.wet)

        self.display_feedback = fb
        self.display_damping = damp
        self.display_wet = wet

        store = self._filterstore
        dry = 1.0 - wet
        out = []
        for sample in block:
            acc = 0.0
            for j, comb in enumerate(self.combs):
                delayed = comb.push(sample + store[j] * fb)
                store[j] = damp * store[j] + (1.0 - damp) * delayed
                acc += delayed
            for stage in self.allpasses:
                acc = stage.allpass(acc)
            out.append(dry * sample + wet * (acc / NUM_COMBS))
        self.output = out
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            fb, damp, wet = self.display_feedback, self.display_damping, self.display_wet
        return [
            f"[Freeverb:{self.name}] fb: {fb:.2f} | damp: {damp:.2f} | wet: {wet:.2f}",
            "Keys: -/= fb, _/+ damp, [/] wet",
            "Cmd: :1 [fb], :2 [damp], :3 [wet]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "fb":
                self.feedback = value
            elif param == "damp":
                self.damping = value
            elif param == "wet":
                self.wet = value
            else:
                raise ValueError(f"[freeverb] unknown parameter: {param}")
            self._clamp()