"""Frequency-modulation style waveshaper applied to the input."""

from __future__ import annotations

import math
import sys
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

_MIN_HZ = 0.01
_MAX_HZ = 20000.0


class FMMod(Module):
    """Multiplies the input by sin(2*pi*index*sin(2*pi*phase))."""

    type_name = "fm_mod"

    _STEPS = {
        "=": ("mod_freq", 0.5),
        "-": ("mod_freq", -0.5),
        "+": ("index", 0.01),
        "_": ("index", -0.01),
    }
    _COMMANDS = {"1": "mod_freq", "2": "index"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.mod_freq = parse_create_arg(args, "mod_freq", 440.0)
        self.index = parse_create_arg(args, "idx", 1.0)
        self._phase = 0.0
        self._smooth_freq = Smoother(0.75)
        self._smooth_index = Smoother(0.75)
        self.display_freq = 0.0
        self.display_index = 0.0
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        self.index = clamp(self.index, 0.01, sys.float_info.max)
        self.mod_freq = clamp(self.mod_freq, 0.01, self.sample_rate * 0.45)

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            freq = self._smooth_freq.step(self.mod_freq)
            index = self._smooth_index.step(self.index)

        for param, norm in self._modulations():
            if param == "mod_freq":
                freq = self.mod_freq + norm * self.mod_freq
            elif param == "idx":
                index = self.index + norm * (10.0 - self.index)

        self.display_freq = freq
        self.display_index = index

        phase = self._phase
        increment = freq / self.sample_rate
        out = []
        for sample in block:
            mod = math.sin(2.0 * math.pi * phase)
            out.append(sample * math.sin(2.0 * math.pi * index * mod))
            phase += increment
            if phase >= 1.0:
                phase -= 1.0
        self._phase = phase
        self.output = out
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            freq, index = self.display_freq, self.display_index
        return [
            f"[FMMod:{self.name}] mod_freq {freq:.2f} Hz | index (idx) {index:.2f}",
            "Real-time keys: -/= (mod freq), _/+ (idx)",
            "Command mode: :1 [mod freq], :2 [idx]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "mod_freq":
                norm = clamp(value, 0.0, 1.0)
                self.mod_freq = _MIN_HZ * (_MAX_HZ / _MIN_HZ) ** norm
            elif param == "index":
                self.index = max(value, 0.0)
            else:
                raise ValueError(f"[fm_mod] unknown parameter: {param}")